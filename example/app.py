import logging
from datetime import date
from typing import Optional

import uvicorn
from fastapi import FastAPI
from sqlalchemy import ForeignKey, create_engine
from sqlalchemy.orm import Mapped, mapped_column, relationship, sessionmaker

from quickgql import (
    Base,
    MutationParams,
    QueryParams,
    ResourceParams,
    RouterFactory,
    build_resource,
)

# ### database boilerplate
# just normal sqlalchemy stuff!

engine = create_engine("sqlite:///database.db", echo=False)
SessionMaker = sessionmaker(bind=engine)

# ### Resource Definitions

# resources with user-provided string ids
Resource = build_resource(sessionmaker=SessionMaker, id_type=str)

# resources with autoincrementing integer ids
IntResource = build_resource(sessionmaker=SessionMaker, id_type=int)


class Owner(Base, Resource):
    __tablename__ = "owners"
    first_name: Mapped[str] = mapped_column()
    last_name: Mapped[str] = mapped_column()

    pets: Mapped[list["Pet"]] = relationship(back_populates="owner")

    certifications: Mapped[list["Certification"]] = relationship(
        secondary="owner_certifications",
    )

    class resource_cfg(ResourceParams):
        # choose which associations can be selected on the GraphQL type
        serialize = ["pets", "certifications"]

    class query_cfg(QueryParams):
        description = "Read one owner, by id or by the first match of `where`"
        plural_description = "Read owners, with a total when action is COUNT"

    class mutation_cfg(MutationParams):
        description = "Create, read-or-create, upsert, update or delete one owner"


# models - just normal sqlalchemy models with the Resource mixin!
class Specie(Base, Resource):
    __tablename__ = "species"

    common_name: Mapped[str] = mapped_column()
    scientific_name: Mapped[str] = mapped_column()

    @classmethod
    def find_all(cls, db, options):
        # species are listed alphabetically unless asked otherwise
        if not options.order:
            options.order = ["common_name"]
        return super().find_all(db, options)


class Pet(Base, Resource):
    __tablename__ = "pets"

    name: Mapped[str] = mapped_column()
    public: Mapped[bool] = mapped_column(default=False)
    vaccination_date: Mapped[Optional[date]] = mapped_column(nullable=True)

    species_id: Mapped[str] = mapped_column(ForeignKey("species.id"))
    owner_id: Mapped[str] = mapped_column(ForeignKey("owners.id"))

    owner: Mapped["Owner"] = relationship(back_populates="pets")
    specie: Mapped["Specie"] = relationship()
    notes: Mapped[list["Note"]] = relationship(back_populates="pet")

    class resource_cfg(ResourceParams):
        serialize = ["owner", "specie", "notes"]


class Note(Base, IntResource):
    __tablename__ = "notes"

    text: Mapped[str] = mapped_column()
    pet_id: Mapped[str] = mapped_column(ForeignKey("pets.id"))

    pet: Mapped["Pet"] = relationship(back_populates="notes")


class Certification(Base, Resource):
    __tablename__ = "certifications"

    name: Mapped[str] = mapped_column()
    description: Mapped[str] = mapped_column()
    internal_code: Mapped[Optional[str]] = mapped_column(nullable=True)

    class resource_cfg(ResourceParams):
        pop_params = ["internal_code"]


class OwnerCertifications(Base):
    __tablename__ = "owner_certifications"
    owner_id: Mapped[str] = mapped_column(ForeignKey("owners.id"), primary_key=True)
    certification_id: Mapped[str] = mapped_column(
        ForeignKey("certifications.id"), primary_key=True
    )


all_models = {
    cls.__name__.lower(): cls for cls in [Owner, Pet, Specie, Note, Certification]
}

# instantiate a FastAPI app
app = FastAPI(title="QuickGQL Example")

# build the query and mutation fields for each resource and serve them at /graphql
gql = RouterFactory.mount(app, all_models)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    Base.metadata.create_all(engine)
    uvicorn.run(app, host="0.0.0.0", port=8000)
