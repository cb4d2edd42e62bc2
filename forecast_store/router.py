import enum
import logging
from dataclasses import dataclass

from . import contract
from .errors import UnrecognizedLocator

logger = logging.getLogger(__name__)

NUMBER_WILDCARD = "#"

class LocatorCode(enum.IntEnum):
    ALL_RECORDS = 100
    RECORDS_FOR_DATE = 101


@dataclass(frozen=True)
class RouteMatch:
    code: LocatorCode
    locator: str
    date: int | None = None


class LocatorRouter:
    """
    Maps locators to operation codes.

    Matching is purely structural: the authority has to be equal and every path
    segment has to match, where ``#`` matches one all-digit segment.
    """

    def __init__(self):
        self.routes: dict[tuple[str, tuple[str, ...]], LocatorCode] = {}

    def add_route(self, authority: str, path: str, code: LocatorCode):
        pattern = tuple(s for s in path.split("/") if s)
        key = (authority, pattern)
        if key in self.routes:
            raise ValueError(f"Route {authority}/{path} is already registered for {self.routes[key].name}")

        self.routes[key] = code
        logger.debug(f"Registered route {authority}/{path} -> {code.name}")

    @staticmethod
    def _segments_match(pattern: tuple[str, ...], segments: tuple[str, ...]) -> bool:
        if len(pattern) != len(segments):
            return False
        for expected, actual in zip(pattern, segments):
            if expected == NUMBER_WILDCARD:
                if not (actual.isascii() and actual.isdigit()):
                    return False
            elif expected != actual:
                return False
        return True

    def match(self, locator: str) -> RouteMatch:
        """
        Resolve ``locator`` to a RouteMatch.

        Raises
        ------
        UnrecognizedLocator
            If no registered route matches.
        """
        try:
            authority, segments = contract.parse_locator(locator)
        except (TypeError, ValueError):
            raise UnrecognizedLocator(locator)

        for (route_authority, pattern), code in self.routes.items():
            if route_authority != authority or not self._segments_match(pattern, segments):
                continue

            date = None
            if code == LocatorCode.RECORDS_FOR_DATE:
                date = contract.date_from_locator(locator)
            return RouteMatch(code=code, locator=locator, date=date)

        raise UnrecognizedLocator(locator)


def build_router(authority: str = contract.CONTENT_AUTHORITY) -> LocatorRouter:
    """Router for ``<authority>/weather`` and ``<authority>/weather/#``."""
    router = LocatorRouter()
    router.add_route(authority, contract.PATH_WEATHER, LocatorCode.ALL_RECORDS)
    router.add_route(authority, f"{contract.PATH_WEATHER}/{NUMBER_WILDCARD}", LocatorCode.RECORDS_FOR_DATE)
    return router
