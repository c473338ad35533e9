import inflection


class classproperty:
    """
    Read-only property evaluated on the class rather than on instances.
    """

    def __init__(self, fget):
        self.fget = fget

    def __get__(self, instance, owner):
        return self.fget(owner)


def model_name(model) -> str:
    # OwnerCertification -> ownerCertification
    return inflection.camelize(
        inflection.underscore(model.__name__), uppercase_first_letter=False
    )


def plural_name(model) -> str:
    return inflection.pluralize(model_name(model))


def type_name(model) -> str:
    return model.__name__[:1].upper() + model.__name__[1:]


def with_count_name(model) -> str:
    return type_name(model) + "WithCount"
