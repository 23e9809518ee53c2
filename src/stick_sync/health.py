"""Preflight health checks run before plugging a sync into a schedule."""

from datetime import datetime
from pathlib import Path

import structlog

from stick_sync.device.device_inspector import DeviceInspector
from stick_sync.errors import SyncError
from stick_sync.models.config import AppConfig
from stick_sync.sync.capacity_guard import CapacityGuard
from stick_sync.utils.config_loader import ConfigLoader, ConfigurationError

log = structlog.stdlib.get_logger()


class HealthChecker:
    """Performs preflight checks on configuration, source and destination."""

    def __init__(
        self,
        source: str,
        destination: str | None = None,
        config_path: str | None = None,
        capacity_guard: CapacityGuard | None = None,
    ):
        """
        Initialize health checker.

        Args:
            source: Source folder
            destination: Destination folder (configured default if None)
            config_path: Optional path to configuration file
            capacity_guard: Capacity guard used for the space check
        """
        self.source = source
        self.destination = destination
        self.config_path = config_path
        self.capacity_guard = capacity_guard or CapacityGuard()
        self.config: AppConfig | None = None
        self.results: dict[str, dict] = {}

    def check_configuration(self) -> bool:
        check_name = "configuration"
        log.info("checking_configuration")

        try:
            config_loader = ConfigLoader()
            self.config = config_loader.load_config(self.config_path)
            warnings = config_loader.validate_config(self.config)
        except ConfigurationError as e:
            self.results[check_name] = {
                "status": "fail",
                "message": f"Configuration error: {e}",
                "details": {},
            }
            return False

        if self.destination is None:
            self.destination = self.config.sync.default_destination

        self.results[check_name] = {
            "status": "warn" if warnings else "pass",
            "message": "Configuration loaded successfully",
            "details": {
                "fingerprint_strategy": self.config.sync.fingerprint_strategy.value,
                "default_destination": self.config.sync.default_destination,
                "warnings": warnings,
            },
        }
        return True

    def check_source(self) -> bool:
        check_name = "source"
        log.info("checking_source", source=self.source)

        if Path(self.source).is_dir():
            self.results[check_name] = {
                "status": "pass",
                "message": "Source folder exists",
                "details": {"source": self.source},
            }
            return True

        self.results[check_name] = {
            "status": "fail",
            "message": f"Folder does not exist: {self.source}",
            "details": {"source": self.source},
        }
        return False

    def check_destination(self) -> bool:
        """Check the destination exists; an unmounted destination is only a warning."""
        check_name = "destination"
        destination = self.destination or ""
        log.info("checking_destination", destination=destination)

        inspector = DeviceInspector(destination)
        if not inspector.exists():
            self.results[check_name] = {
                "status": "fail",
                "message": f"{destination} is not mounted",
                "details": {"destination": destination},
            }
            return False

        mounted = inspector.is_mounted()
        self.results[check_name] = {
            "status": "pass" if mounted else "warn",
            "message": "Destination is mounted" if mounted else "Destination is not a mount point",
            "details": {"destination": destination, "mounted": mounted},
        }
        return True

    def check_capacity(self) -> bool:
        check_name = "capacity"
        log.info("checking_capacity")

        if self.results.get("source", {}).get("status") == "fail" or self.results.get(
            "destination", {}
        ).get("status") == "fail":
            self.results[check_name] = {
                "status": "skip",
                "message": "Source or destination unavailable",
                "details": {},
            }
            return True

        try:
            snapshot = self.capacity_guard.measure(self.source, self.destination or "")
        except (OSError, SyncError) as e:
            self.results[check_name] = {
                "status": "fail",
                "message": f"Capacity check error: {e}",
                "details": {},
            }
            return False

        self.results[check_name] = {
            "status": "pass" if snapshot.fits else "fail",
            "message": (
                "Source fits on destination"
                if snapshot.fits
                else f"Source size ({snapshot.required_gib} GB) exceeds "
                f"destination space ({snapshot.available_gib} GB)"
            ),
            "details": {
                "required_bytes": snapshot.required,
                "available_bytes": snapshot.available,
                "required_gib": snapshot.required_gib,
                "available_gib": snapshot.available_gib,
            },
        }
        return snapshot.fits

    def run_all_checks(self) -> bool:
        """
        Run all health checks in order.

        Returns:
            True if no check failed
        """
        checks = [
            self.check_configuration,
            self.check_source,
            self.check_destination,
            self.check_capacity,
        ]

        all_passed = True
        for check in checks:
            if not check():
                all_passed = False

        return all_passed

    def get_summary(self) -> dict:
        """Get summary of all health check results."""
        statuses = [result["status"] for result in self.results.values()]
        failed = statuses.count("fail")

        return {
            "timestamp": datetime.now().isoformat(),
            "overall_status": "healthy" if failed == 0 else "unhealthy",
            "total_checks": len(statuses),
            "passed": statuses.count("pass"),
            "failed": failed,
            "warnings": statuses.count("warn"),
            "skipped": statuses.count("skip"),
            "checks": self.results,
        }
