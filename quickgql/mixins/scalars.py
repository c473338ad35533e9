from typing import NewType

import strawberry

# Values are passed through untouched: clients may send either a JSON-encoded
# string or a literal object, and the resolvers decode both.
Json = NewType("Json", object)

scalar_map = {
    Json: strawberry.scalar(
        name="Json",
        description="A JSON object, or a string holding one",
        serialize=lambda v: v,
        parse_value=lambda v: v,
    ),
}
