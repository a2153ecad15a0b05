from pydantic import BaseModel, ConfigDict


class Metric(BaseModel):
    """A distance unit expressed through the earth radius it yields."""

    model_config = ConfigDict(frozen=True)

    name: str
    multiplier: float
    abbreviation: str = ""

    def __str__(self) -> str:
        return self.name


class Metrics:
    KILOMETERS = Metric(name="KILOMETERS", multiplier=6378.137, abbreviation="km")
    MILES = Metric(name="MILES", multiplier=3963.191, abbreviation="mi")
    NEUTRAL = Metric(name="NEUTRAL", multiplier=1.0, abbreviation="")

    # earth radius in metres, the unit GeoJSON queries work in
    EARTH_RADIUS_METERS = 6378137.0
