import pytest

from koreander import Koreander


class Page:
    def __init__(self, **attributes):
        self.__dict__.update(attributes)


@pytest.fixture
def koreander():
    return Koreander()


@pytest.fixture
def render(koreander):
    def _render(source, **attributes):
        return koreander.render(source, Page(**attributes))
    return _render
