from dishka import Provider as DishkaProvider

from courier.util.di.scope import Scope


class Provider(DishkaProvider):
    """Base for all courier DI providers.

    Defaults to the UOW scope so that providers only need to annotate
    the APP-scoped singletons explicitly.
    """

    scope = Scope.UOW
