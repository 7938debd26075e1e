import os
import sys
import time
import threading
import subprocess
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import List, Dict, Any, Optional

from config_utils import Configuration
from constants import DEFAULT_CONFIG_FILE, WORKER_NUMBER_ENV, WORKER_COUNT_ENV
from exceptions import OrchestrationError, WorkerTimeoutError
from junit_utils import worker_results_name, merge_results
from tag_filters import TagFilters


def group_beakers(beakers: List[str], num_groups: int) -> List[List[str]]:
    """Split beakers into groups of roughly equal total file size.

    Beakers are placed largest first onto the currently lightest group.
    There are never more groups than beakers and no group is empty.
    """
    num_groups = max(1, min(num_groups, len(beakers)))
    groups: List[List[str]] = [[] for _ in range(num_groups)]
    weights = [0] * num_groups

    def size(beaker):
        try:
            return os.path.getsize(beaker)
        except OSError:
            return 0

    for beaker in sorted(beakers, key=lambda b: (-size(b), b)):
        lightest = weights.index(min(weights))
        groups[lightest].append(beaker)
        weights[lightest] += size(beaker)

    return [group for group in groups if group]


class BeakerOrchestrator:
    """Runs a brew across several worker processes.

    Each worker is a ``ckit brew --parallel`` subprocess over its own group
    of beakers, so workers never fan out again. Workers write their own JUnit
    file and the orchestrator merges them into the configured results file.

    Attributes:
        config (Configuration): Harness configuration
        config_path (str): Config file handed to workers
        filters (TagFilters): Tag filters forwarded to workers
        run_all (bool): Forward --all instead of tags
        seed (int): Optional seed forwarded to workers
        num_workers (int): Maximum number of workers
        worker_timeout (int): Timeout per worker in seconds, None for no limit
        worker_progress (dict): Real-time status per worker
        worker_results (dict): Results storage per worker
    """

    def __init__(self, config: Configuration, config_path: str = DEFAULT_CONFIG_FILE,
                 filters: Optional[TagFilters] = None, run_all: bool = False,
                 seed: Optional[int] = None, root: Optional[Path] = None, silent: bool = False):
        self.config = config
        self.root = Path(root or os.getcwd())
        self.config_path = str((self.root / config_path).resolve())
        self.filters = filters or TagFilters()
        self.run_all = run_all
        self.seed = seed
        self.silent = silent

        self.num_workers = config.concurrency
        self.worker_timeout = config.worker_timeout

        self.worker_progress: Dict[int, str] = {}
        self.worker_results: Dict[int, Dict[str, Any]] = {}
        self.progress_lock = threading.Lock()

    def worker_results_path(self, worker_number: int) -> Path:
        name = worker_results_name(self.config.log.results_file, worker_number)
        return self.config.log_dir(self.root) / name

    def build_worker_command(self, group: List[str], worker_number: int) -> List[str]:
        """Command line for one worker process"""
        cmd = [sys.executable, "-m", "ckit", "brew", "--parallel", "--config", self.config_path]

        if self.run_all:
            cmd.append("--all")
        else:
            tags = self.filters.to_args()
            if tags:
                cmd += ["--tag"] + tags

        if self.seed is not None:
            cmd += ["--seed", str(self.seed)]

        cmd += ["--results-file", self.worker_results_path(worker_number).name]
        cmd += ["--beakers"] + list(group)
        return cmd

    def update_worker_progress(self, worker_number: int, status: str, result: Dict[str, Any] = None):
        """Thread-safe progress tracking"""
        with self.progress_lock:
            self.worker_progress[worker_number] = status
            if result is not None:
                self.worker_results[worker_number] = result

    def get_progress_status(self) -> Dict[int, str]:
        """Get current progress status for all workers"""
        with self.progress_lock:
            return self.worker_progress.copy()

    def run_worker(self, worker_number: int, group: List[str], worker_count: int) -> Dict[str, Any]:
        """Run one worker process over a group of beakers.

        This method is designed to be called in parallel by ThreadPoolExecutor.

        Returns
        -------
        dict
            Result dictionary containing:
            - worker: The 1-based worker number
            - status: "success", "failed", "timeout" or "error"
            - returncode: The worker's exit code (None when it never finished)
            - output: Combined stdout and stderr
            - execution_time: Time taken in seconds
        """
        self.update_worker_progress(worker_number, "RUNNING")

        env = os.environ.copy()
        env[WORKER_NUMBER_ENV] = str(worker_number)
        env[WORKER_COUNT_ENV] = str(worker_count)

        start_time = time.time()
        try:
            completed = subprocess.run(
                self.build_worker_command(group, worker_number),
                cwd=str(self.root),
                env=env,
                capture_output=True,
                text=True,
                timeout=self.worker_timeout,
            )
            status = "success" if completed.returncode == 0 else "failed"
            result = {
                "worker": worker_number,
                "status": status,
                "returncode": completed.returncode,
                "output": (completed.stdout or "") + (completed.stderr or ""),
                "execution_time": time.time() - start_time,
            }
        except subprocess.TimeoutExpired:
            result = {
                "worker": worker_number,
                "status": "timeout",
                "returncode": None,
                "output": str(WorkerTimeoutError(worker_number, self.worker_timeout)),
                "execution_time": time.time() - start_time,
            }
        except OSError as e:
            result = {
                "worker": worker_number,
                "status": "error",
                "returncode": None,
                "output": f"Worker {worker_number} could not start: {e}",
                "execution_time": 0,
            }

        self.update_worker_progress(worker_number, result["status"].upper(), result)
        return result

    def _print_result(self, result: Dict[str, Any], group: List[str]):
        if self.silent:
            return
        icon = "✅" if result["status"] == "success" else "❌"
        print(f"\n{icon} Worker {result['worker']} ({len(group)} beakers) "
              f"{result['status']} in {result['execution_time']:.1f}s")
        if result["output"]:
            print(result["output"].rstrip())

    def brew(self, beakers: List[str]) -> int:
        """Run beakers across workers and merge their results.

        Returns
        -------
        int
            0 when every worker passed, 1 otherwise
        """
        brew_start = time.time()
        groups = group_beakers(beakers, self.num_workers)
        if not groups:
            raise OrchestrationError("No beakers to brew")

        self.worker_progress = {}
        self.worker_results = {}
        for number in range(1, len(groups) + 1):
            self.worker_progress[number] = "QUEUED"

        if not self.silent:
            print(f"🧪 Brewing {len(beakers)} beakers across {len(groups)} workers...")

        results = []
        with ThreadPoolExecutor(max_workers=len(groups)) as executor:
            future_to_worker = {
                executor.submit(self.run_worker, number, group, len(groups)): number
                for number, group in enumerate(groups, 1)
            }
            for future in as_completed(future_to_worker):
                number = future_to_worker[future]
                result = future.result()
                results.append(result)
                self._print_result(result, groups[number - 1])

        results.sort(key=lambda r: r["worker"])

        worker_files = [self.worker_results_path(r["worker"]) for r in results]
        totals = merge_results(worker_files, self.config.results_path(self.root))

        if not self.silent:
            print(f"\n{int(totals['tests'])} examples, {int(totals['failures'])} failures, "
                  f"{int(totals['errors'])} errors, {int(totals['skipped'])} skipped")
            print(f"⏱️  Total brew time: {time.time() - brew_start:.1f}s")

        return 0 if all(r["status"] == "success" for r in results) else 1
