from .demo import (  # noqa: F401
    bootstrap,
    fetch_books_with_authors,
    reset,
    run_demo,
    seed_sample_data,
)

__all__ = [
    "bootstrap",
    "seed_sample_data",
    "reset",
    "run_demo",
    "fetch_books_with_authors",
]
