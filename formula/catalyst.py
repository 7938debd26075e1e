import csv
from pathlib import Path
from typing import Dict, List, Optional, Union

from constants import DEFAULT_ENCODING


class Catalyst:
    """Key/value test data read from a two-column CSV file.

    Each row is ``key,value``. Values are available by key or as attributes:

    >>> catalyst = Catalyst("formulas/lib/catalysts/login.csv")
    >>> catalyst.username
    'bob'
    """

    def __init__(self, data_file: Union[str, Path]):
        self.data_file = Path(data_file)
        self._data: Dict[str, Optional[str]] = {}
        with open(self.data_file, newline="", encoding=DEFAULT_ENCODING) as f:
            for row in csv.reader(f):
                if not row or not row[0].strip():
                    continue
                self._data[row[0].strip()] = row[1] if len(row) > 1 else None

    def __getattr__(self, name):
        # only called for names not found normally
        if name.startswith("_"):
            raise AttributeError(name)
        if name not in self._data:
            raise AttributeError(f"Unknown key '{name}' for catalyst {self.data_file}")
        return self._data[name]

    def __contains__(self, key):
        return key in self._data

    def get_value_for(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def keys(self) -> List[str]:
        return list(self._data)
