"""Fortune media photo upload service and client pipeline."""
