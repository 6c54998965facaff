"""Pure resolution, validation and scheduling building blocks of a suite run."""
