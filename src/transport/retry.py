class RetryPolicy:
    """Retry decisions for transport calls that produced no usable response.

    The default schedule is empty, so nothing is retried unless a schedule is
    configured. Only idempotent methods are ever retried.
    """

    DEFAULT_SCHEDULE: list[float] = []

    # Gateway-level failures; anything else is a real answer from the backend
    RETRY_CODES = {502, 503, 504}

    IDEMPOTENT_METHODS = {"GET", "PUT", "DELETE"}

    def __init__(self, schedule: list[float] | None = None, max_retries: int | None = None):
        self.schedule = list(schedule) if schedule is not None else list(self.DEFAULT_SCHEDULE)
        self.max_retries = max_retries if max_retries is not None else len(self.schedule)

    @classmethod
    def exponential(cls, max_retries: int, base_delay: float) -> "RetryPolicy":
        """``max_retries`` retries waiting base_delay, 2*base_delay, 4*base_delay, ..."""
        return cls(schedule=[base_delay * 2 ** i for i in range(max_retries)], max_retries=max_retries)

    def should_retry(self, method: str, status_code: int | None) -> bool:
        """Determine if a call should be retried.

        Returns True for idempotent methods when:
        - status_code is None (connection error / timeout)
        - status_code is a gateway failure (502, 503, 504)
        """
        if method.upper() not in self.IDEMPOTENT_METHODS:
            return False
        if status_code is None:
            return True
        return status_code in self.RETRY_CODES

    def next_delay(self, attempt: int) -> float:
        """Delay in seconds before the next retry attempt (0-indexed)."""
        if not self.schedule:
            return 0.0
        if attempt >= len(self.schedule):
            return float(self.schedule[-1])
        return float(self.schedule[attempt])

    def has_attempts_remaining(self, attempt: int) -> bool:
        return attempt < self.max_retries
