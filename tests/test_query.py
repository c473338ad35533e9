import json

from conftest import gql_request


def test_read_resources(setup_and_fill_db, resources, app):
    """
    This test uses the ids of each resource to read it back through the singular query.
    """

    for resource_name, field in [
        ("owners", "owner"),
        ("species", "specie"),
        ("certifications", "certification"),
        ("pets", "pet"),
    ]:
        for resource in resources[resource_name]:
            result = gql_request(
                app,
                "query($id: String) { %s(id: $id) { id } }" % field,
                {"id": resource["id"]},
            )
            assert result["data"][field]["id"] == resource["id"]


def test_read_by_id_with_associations(setup_and_fill_db, app):

    result = gql_request(
        app,
        """
        {
          pet(id: "waffles") {
            name
            vaccinationDate
            specie { commonName }
            owner { firstName pets { id } }
          }
        }
        """,
    )

    pet = result["data"]["pet"]
    assert pet["name"] == "Waffles"
    assert pet["vaccinationDate"] == "2023-04-01"
    assert pet["specie"]["commonName"] == "Dog"
    assert pet["owner"]["firstName"] == "Bonita"
    assert pet["owner"]["pets"] == [{"id": "waffles"}]


def test_read_one_by_where(setup_and_fill_db, app):

    query = "query($where: Json, $options: Json) { pet(where: $where, sort: \"name\", options: $options) { id } }"

    # where as a JSON string
    result = gql_request(
        app, query, {"where": json.dumps({"owner_id": "pawdrick_pupper"})}
    )
    assert result["data"]["pet"]["id"] == "bacon"

    # where as an object, options override the sort argument
    result = gql_request(
        app,
        query,
        {"where": {"owner_id": "pawdrick_pupper"}, "options": {"order": "-name"}},
    )
    assert result["data"]["pet"]["id"] == "toast"

    # where inside options
    result = gql_request(
        app, query, {"options": json.dumps({"where": {"public": False, "species_id": "dog"}, "offset": 1})}
    )
    assert result["data"]["pet"]["id"] == "waffles"


def test_read_one_missing(setup_and_fill_db, app):

    result = gql_request(app, '{ pet(id: "garfield") { id } }')
    assert result["data"]["pet"] is None
    assert "errors" not in result

    result = gql_request(app, '{ pet(where: "{\\"name\\": \\"Garfield\\"}") { id } }')
    assert result["data"]["pet"] is None


def test_read_many(setup_and_fill_db, app):

    result = gql_request(
        app,
        """
        {
          pets(where: "{\\"owner_id\\": \\"pawdrick_pupper\\"}", offset: 1, limit: 5, sort: "name") {
            offset
            limit
            count
            rows { id }
          }
        }
        """,
    )

    pets = result["data"]["pets"]
    assert pets["offset"] == 1
    assert pets["limit"] == 5
    # no count unless asked for
    assert pets["count"] is None
    assert [p["id"] for p in pets["rows"]] == ["pancake", "toast"]


def test_read_many_with_count(setup_and_fill_db, app):

    result = gql_request(
        app,
        """
        query($options: Json) {
          pets(action: COUNT, limit: 2, options: $options) {
            count
            rows { id }
          }
        }
        """,
        {"options": {"where": {"public": True}, "order": ["name"]}},
    )

    pets = result["data"]["pets"]
    assert pets["count"] == 2
    assert [p["id"] for p in pets["rows"]] == ["bacon", "pancake"]

    result = gql_request(
        app, "{ owners(action: COUNT, limit: 1) { count rows { id } } }"
    )
    assert result["data"]["owners"]["count"] == 3
    assert len(result["data"]["owners"]["rows"]) == 1


def test_read_many_overridden_persistence(setup_and_fill_db, app):

    result = gql_request(app, "{ species { rows { commonName } } }")
    assert [s["commonName"] for s in result["data"]["species"]["rows"]] == [
        "Cat",
        "Dog",
        "Rabbit",
    ]


def test_read_failcases(setup_and_fill_db, app):

    result = gql_request(app, '{ pet(where: "{name: Waffles}") { id } }')
    assert result["data"]["pet"] is None
    assert "not valid JSON" in result["errors"][0]["message"]

    result = gql_request(app, '{ pets(where: "{\\"colour\\": \\"brown\\"}") { count } }')
    assert result["data"]["pets"] is None
    assert "Pet has no column 'colour'" in result["errors"][0]["message"]

    result = gql_request(app, '{ pets(options: "{\\"limit\\": -3}") { count } }')
    assert "Argument 'options' is invalid" in result["errors"][0]["message"]
