"""Ski resorts with an apres-ski venue endpoint.

Most resorts resolve to their municipality boundary in OSM. Verbier and
Whistler are not municipalities of their own, so they use a point + radius.
"""

from errors import UnknownLocationError
from models import AreaLocation, Location, PointLocation

LOCATIONS: dict[str, Location] = {
    loc.slug: loc
    for loc in [
        Location(slug="st-anton", title="St. Anton am Arlberg", country="AT",
                 descriptor=AreaLocation(name="Sankt Anton am Arlberg")),
        Location(slug="ischgl", title="Ischgl", country="AT",
                 descriptor=AreaLocation(name="Ischgl")),
        Location(slug="kitzbuehel", title="Kitzbühel", country="AT",
                 descriptor=AreaLocation(name="Kitzbühel")),
        Location(slug="mayrhofen", title="Mayrhofen", country="AT",
                 descriptor=AreaLocation(name="Mayrhofen")),
        Location(slug="soelden", title="Sölden", country="AT",
                 descriptor=AreaLocation(name="Sölden")),
        Location(slug="zermatt", title="Zermatt", country="CH",
                 descriptor=AreaLocation(name="Zermatt")),
        Location(slug="verbier", title="Verbier", country="CH",
                 descriptor=PointLocation(latitude=46.0964, longitude=7.2286)),
        Location(slug="chamonix", title="Chamonix", country="FR",
                 descriptor=AreaLocation(name="Chamonix-Mont-Blanc")),
        Location(slug="val-disere", title="Val d'Isère", country="FR",
                 descriptor=AreaLocation(name="Val-d'Isère")),
        Location(slug="whistler", title="Whistler", country="CA",
                 descriptor=PointLocation(latitude=50.1163, longitude=-122.9574)),
    ]
}


def get_location(slug: str) -> Location:
    location = LOCATIONS.get(slug.lower())
    if location is None:
        raise UnknownLocationError(slug, list(LOCATIONS))
    return location
