"""Errors raised inside the guarantee pipeline; the orchestrator turns them into envelope errors."""


class BaaPError(Exception):
    """Base class for pipeline failures."""


class ItineraryGenerationError(BaaPError):
    def __init__(self, errors: list[str] | None = None):
        self.errors = errors or []
        detail = "; ".join(self.errors) if self.errors else "no itinerary produced"
        super().__init__(f"Failed to generate base itinerary: {detail}")


class ItineraryValidationError(BaaPError):
    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Itinerary failed validation: {'; '.join(errors)}")


class ProfileLookupError(BaaPError):
    def __init__(self, user_id: str, cause: Exception):
        self.user_id = user_id
        super().__init__(f"Profile lookup failed for user {user_id}: {cause}")
