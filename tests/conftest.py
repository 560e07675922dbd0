from datetime import datetime, timedelta, timezone


class FakeClock:
    """Controllable clock for stores, analyzers and controllers."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 3, 13, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now
