from enum import Enum

import strawberry


@strawberry.enum(description="Operation selector shared by generated queries and mutations")
class Action(Enum):
    CREATE = "CREATE"
    READ = "READ"
    UPSERT = "UPSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    COUNT = "COUNT"
