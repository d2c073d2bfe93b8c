"""Station reference data: TIPLOC -> station display metadata."""

import json
import logging
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger(__name__)


class StationDirectoryError(ValueError):
    """Raised when a station table file cannot be loaded."""


class StationMapping(BaseModel):
    """Station metadata for one TIPLOC."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    tiploc_code: str
    station_code: str  # CRS code shown to consumers
    station_name: str
    is_eurostar_connection: bool = False
    latitude: float | None = None
    longitude: float | None = None


# (tiploc, crs, name, eurostar connection)
DEFAULT_STATIONS: list[tuple[str, str, str, bool]] = [
    # London termini
    ("EUSTON", "EUS", "London Euston", False),
    ("KNGX", "KGX", "London King's Cross", False),
    ("STPX", "STP", "London St Pancras", True),
    ("STPANCI", "STP", "London St Pancras International", True),
    ("PADTON", "PAD", "London Paddington", False),
    ("VICTRIA", "VIC", "London Victoria", False),
    ("WATRLMN", "WAT", "London Waterloo", False),
    ("LIVST", "LST", "London Liverpool Street", False),
    ("CHRX", "CHX", "London Charing Cross", False),
    # major cities
    ("BHAM", "BHM", "Birmingham New Street", False),
    ("BHAMNWS", "BHM", "Birmingham New Street", False),
    ("MNCRPIC", "MAN", "Manchester Piccadilly", False),
    ("LEEDS", "LDS", "Leeds", False),
    ("EDINBUR", "EDB", "Edinburgh Waverley", False),
    ("GLGC", "GLC", "Glasgow Central", False),
    ("BRSTLTM", "BRI", "Bristol Temple Meads", False),
    ("CRDFCNT", "CDF", "Cardiff Central", False),
    ("YORK", "YRK", "York", False),
    ("NEWCSTLE", "NCL", "Newcastle", False),
    # Eurostar connections
    ("ASHFKY", "AFK", "Ashford International", True),
    ("EBSFDOM", "EBD", "Ebbsfleet International", True),
    # others
    ("RDNGSTN", "RDG", "Reading", False),
    ("OXFD", "OXF", "Oxford", False),
    ("CAMBDGE", "CBG", "Cambridge", False),
    ("SOTON", "SOU", "Southampton Central", False),
    ("BRGHTNS", "BTN", "Brighton", False),
    ("LIVRPL", "LIV", "Liverpool Lime Street", False),
    ("SHEFFLD", "SHF", "Sheffield", False),
    ("NTTM", "NOT", "Nottingham", False),
    ("EXETSD", "EXD", "Exeter St Davids", False),
    ("PLYMTH", "PLY", "Plymouth", False),
    ("MKTNKYL", "MKC", "Milton Keynes Central", False),
]


class StationDirectory:
    """Immutable lookup from TIPLOC code to station metadata.

    Unknown TIPLOCs are expected in real feeds; `resolve` returns None for them.
    """

    def __init__(self, stations: Iterable[StationMapping]):
        """Initialize the directory.

        Args:
            stations: Station mappings. Later entries win on duplicate TIPLOCs.
        """
        self._stations: Mapping[str, StationMapping] = MappingProxyType(
            {station.tiploc_code: station for station in stations}
        )

    def resolve(self, tiploc_code: str) -> StationMapping | None:
        """Look up a TIPLOC, returning None if it is not a known station."""
        return self._stations.get(tiploc_code)

    def __contains__(self, tiploc_code: object) -> bool:
        return tiploc_code in self._stations

    def __len__(self) -> int:
        return len(self._stations)

    def __iter__(self) -> Iterator[StationMapping]:
        return iter(self._stations.values())

    @property
    def tiploc_codes(self) -> list[str]:
        return list(self._stations)

    @classmethod
    def default(cls) -> "StationDirectory":
        """Directory built from the bundled station table."""
        return cls(
            StationMapping(
                tiploc_code=tiploc,
                station_code=crs,
                station_name=name,
                is_eurostar_connection=eurostar,
            )
            for tiploc, crs, name, eurostar in DEFAULT_STATIONS
        )

    @classmethod
    def from_file(cls, path: Path) -> "StationDirectory":
        """Load a directory from a JSON file.

        The file holds a list of objects with `tiploc_code`, `station_code`,
        `station_name` and optionally `is_eurostar_connection`, `latitude`,
        `longitude`.

        Args:
            path: Path to the JSON station table.

        Returns:
            StationDirectory with the file's stations.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            StationDirectoryError: If the file is not a valid station table.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Station table not found: {path}")

        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise StationDirectoryError(f"{path.name} is not valid JSON: {e.msg}") from e

        if not isinstance(payload, list):
            raise StationDirectoryError(f"{path.name} must contain a JSON list of stations")

        try:
            stations = [StationMapping.model_validate(entry) for entry in payload]
        except ValidationError as e:
            raise StationDirectoryError(f"{path.name} has invalid station entries: {e}") from e

        logger.info(f"Loaded {len(stations)} stations from {path}")
        return cls(stations)
