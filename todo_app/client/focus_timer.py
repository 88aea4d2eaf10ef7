"""
Focus session countdown used next to the focus queue.
"""

DEFAULT_FOCUS_MINUTES = 25


class FocusTimer:
    def __init__(self, minutes: int = DEFAULT_FOCUS_MINUTES):
        self.minutes = minutes
        self.seconds_left = minutes * 60
        self.running = False

    def set_minutes(self, minutes: int) -> None:
        """Changing the length restarts the countdown from the new length"""
        if minutes <= 0:
            raise ValueError("Focus length must be positive")
        self.minutes = minutes
        self.seconds_left = minutes * 60

    def start(self) -> None:
        if self.seconds_left > 0:
            self.running = True

    def pause(self) -> None:
        self.running = False

    def reset(self) -> None:
        self.running = False
        self.seconds_left = self.minutes * 60

    def tick(self, seconds: int = 1) -> None:
        if not self.running:
            return
        self.seconds_left = max(0, self.seconds_left - seconds)
        if self.seconds_left == 0:
            self.running = False

    @property
    def progress(self) -> int:
        """Elapsed share of the session, in percent"""
        total = self.minutes * 60
        return round(100 * (total - self.seconds_left) / total)

    def formatted(self) -> str:
        minutes, seconds = divmod(self.seconds_left, 60)
        return f"{minutes:02d}:{seconds:02d}"
