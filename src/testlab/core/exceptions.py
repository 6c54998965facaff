# core/exceptions.py


class TestLabError(Exception):
    """Base error raised by the application layer."""


class SuiteNotFoundError(TestLabError):
    def __init__(self, suite_id: str):
        super().__init__(f"Test suite '{suite_id}' not found")
        self.suite_id = suite_id


class SuiteAlreadyRunningError(TestLabError):
    def __init__(self, suite_id: str):
        super().__init__(f"Test suite '{suite_id}' is already running")
        self.suite_id = suite_id


class NoRunStateError(TestLabError):
    def __init__(self, suite_id: str):
        super().__init__(f"No run state for test suite '{suite_id}'")
        self.suite_id = suite_id


class StorageError(TestLabError):
    """A stored document could not be read, so it must not be rewritten."""
