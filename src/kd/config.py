from dataclasses import dataclass


@dataclass
class RunConfig:
    """
    Settings for a single deployment run. Durations are in seconds.
    """

    dry_run: bool = False
    """ Render and decode all manifests, but do not submit or watch anything. """

    fail_superseded: bool = False
    """ Fail the rollout if the resource is updated by someone else while it is being watched. """

    timeout: float = 180.0
    """ The time to wait for the rollout of a single resource to complete. """

    check_interval: float = 1.0
    """ The time between two status checks. """

    initial_delay: float = 3.0
    """ The time to wait after submitting a resource before checking its status for the first time. """

    status_retries: int = 3
    """ The number of attempts to fetch the status of a resource in each check. """

    status_retry_pause: float = 2.0
    """ The time to wait between two attempts to fetch the status of a resource. """

    debug_templates: bool = False
    """ Log every rendered document. """

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError(f"RunConfig.timeout must be positive, got {self.timeout}")
        if self.check_interval <= 0:
            raise ValueError(f"RunConfig.check_interval must be positive, got {self.check_interval}")
        if self.status_retries < 1:
            raise ValueError(f"RunConfig.status_retries must be at least 1, got {self.status_retries}")
        if self.initial_delay < 0 or self.status_retry_pause < 0:
            raise ValueError("RunConfig.initial_delay and RunConfig.status_retry_pause must not be negative")
