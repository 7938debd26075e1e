"""JUnit XML utilities for combining results written by parallel workers."""

import logging
import xml.etree.ElementTree as StdET
from pathlib import Path
from typing import Dict, Iterable, List, Union

import defusedxml.ElementTree as ET
from defusedxml import DefusedXmlException

from constants import DEFAULT_ENCODING

logger = logging.getLogger(__name__)

COUNTERS = ['tests', 'failures', 'errors', 'skipped']


def worker_results_name(results_file: str, worker_number: int) -> str:
    """
    Name of the results file a single worker writes.

    Parameters
    ----------
    results_file : str
        The configured results file name, e.g. "results_junit.xml"
    worker_number : int
        1-based worker number

    Returns
    -------
    str
        e.g. "results_junit_2.xml"
    """
    path = Path(results_file)
    return f"{path.stem}_{worker_number}{path.suffix}"


def _read_suites(path: Path) -> List[StdET.Element]:
    """Return the <testsuite> elements of one results file"""
    root = ET.parse(str(path)).getroot()
    if root.tag == 'testsuite':
        return [root]
    return list(root.iter('testsuite'))


def _number(value: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def merge_results(paths: Iterable[Union[str, Path]], destination: Union[str, Path]) -> Dict[str, float]:
    """
    Merge several JUnit XML files into one <testsuites> document.

    Worker files are deleted once merged. Missing or malformed files are
    logged and skipped so one crashed worker does not hide the others.

    Parameters
    ----------
    paths : Iterable[str or Path]
        Worker results files
    destination : str or Path
        File the merged document is written to

    Returns
    -------
    Dict[str, float]
        Totals for tests, failures, errors, skipped and time
    """
    totals = {counter: 0 for counter in COUNTERS}
    totals['time'] = 0.0
    merged = StdET.Element('testsuites')
    merged_paths = []

    for path in map(Path, paths):
        if not path.exists():
            logger.warning(f"Results file {path} was not written, skipping")
            continue
        try:
            suites = _read_suites(path)
        except (StdET.ParseError, DefusedXmlException) as e:
            logger.error(f"Results file {path} could not be parsed: {e}")
            continue

        for suite in suites:
            for counter in COUNTERS:
                totals[counter] += int(_number(suite.get(counter, 0)))
            totals['time'] += _number(suite.get('time', 0))
            merged.append(suite)
        merged_paths.append(path)

    for counter in COUNTERS:
        merged.set(counter, str(totals[counter]))
    merged.set('time', f"{totals['time']:.3f}")

    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    StdET.ElementTree(merged).write(str(destination), encoding=DEFAULT_ENCODING, xml_declaration=True)

    for path in merged_paths:
        if path.resolve() != destination.resolve():
            path.unlink()

    logger.debug(f"Merged {len(merged_paths)} results files into {destination}")
    return totals
