import sys
from os.path import abspath, dirname, join

import pytest
import yaml
from fastapi.testclient import TestClient

# append to sys path so pytest can find our example app
root_dir = dirname(dirname(abspath(__file__)))
sys.path.append(root_dir)

from example.app import Base, SessionMaker, all_models, engine  # noqa: E402
from example.app import app as example_app  # noqa: E402
from example.app import gql as example_gql  # noqa: E402

MUTATION_MANY = """
mutation Create($values: Json) {{
  {name}(action: CREATE, values: $values) {{
    count
  }}
}}
"""


def gql_request(app, query, variables=None):
    r = app.post("/graphql", json={"query": query, "variables": variables or {}})
    assert r.status_code == 200, r.text
    return r.json()


@pytest.fixture(autouse=True)
def resources():
    resources_order = [
        # then static and types
        "certifications",
        "species",
        # users first
        "owners",
        # then user data
        "pets",
    ]

    resources = {}
    for resource in resources_order:
        with open(join(root_dir, "example", "example_data", f"{resource}.yaml")) as f:
            resources[resource] = yaml.load(f, Loader=yaml.SafeLoader)
    return resources


@pytest.fixture(autouse=True)
def models():
    return all_models


@pytest.fixture
def gql():
    return example_gql


@pytest.fixture(autouse=True)
def db():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def session(db):
    db_session = SessionMaker(expire_on_commit=False)
    yield db_session
    db_session.close()


@pytest.fixture(autouse=True)
def app(db):
    return TestClient(example_app)


@pytest.fixture()
def setup_and_fill_db(db, app, resources):

    for resource_name, resource_list in resources.items():
        result = gql_request(
            app, MUTATION_MANY.format(name=resource_name), {"values": resource_list}
        )
        assert result["data"][resource_name]["count"] == len(resource_list), result
