"""HTTP service package: FastAPI app and its request/response models."""
