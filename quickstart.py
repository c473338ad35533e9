from datetime import date
from typing import Optional

import uvicorn
from fastapi import FastAPI
from sqlalchemy import ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quickgql import Base, QueryParams, Resource, ResourceParams, RouterFactory

# Resource reads its database from the environment, e.g. SQLITE_DB_PATH=quickstart.db


class Owner(Base, Resource):
    __tablename__ = "owners"
    first_name: Mapped[str] = mapped_column()
    last_name: Mapped[str] = mapped_column()

    pets: Mapped[list["Pet"]] = relationship(back_populates="owner")

    class resource_cfg(ResourceParams):
        serialize = ["pets"]


class Specie(Base, Resource):
    __tablename__ = "species"

    common_name: Mapped[str] = mapped_column()
    scientific_name: Mapped[str] = mapped_column()


class Pet(Base, Resource):
    __tablename__ = "pets"
    # note: all Resource classes have an id column by default
    name: Mapped[str] = mapped_column()
    vaccination_date: Mapped[Optional[date]] = mapped_column(nullable=True)

    species_id: Mapped[int] = mapped_column(ForeignKey("species.id"))
    owner_id: Mapped[int] = mapped_column(ForeignKey("owners.id"))

    owner: Mapped["Owner"] = relationship(back_populates="pets")
    specie: Mapped["Specie"] = relationship()

    class resource_cfg(ResourceParams):
        # choose which associations can be selected on the GraphQL type
        serialize = ["owner", "specie"]

    class query_cfg(QueryParams):
        plural_description = "Pets matching `where`, e.g. {\"vaccination_date\": {\"gte\": \"2024-01-01\"}}"


# instantiate a FastAPI app
app = FastAPI(title="QuickGQL Quickstart")

# build query and mutation fields for each resource and serve them at /graphql
RouterFactory.mount(app, [Owner, Pet, Specie])

if __name__ == "__main__":
    # Base.metadata.create_all(Resource._sessionmaker.kw.get("bind"))  # uncomment this line to create the tables in db backend
    uvicorn.run(app, host="0.0.0.0", port=8000)
