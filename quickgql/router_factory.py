from quickgql.gql_factory import GQLFactory


class RouterFactory:

    @classmethod
    def mount(cls, app, all_models) -> GQLFactory:
        models = list(all_models.values()) if isinstance(all_models, dict) else all_models

        gql = GQLFactory(models)
        app.include_router(gql.router)

        return gql
