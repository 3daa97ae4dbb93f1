"""Unit tests for CatalogMovie methods."""

import pytest

from implementation.classes.movie import CatalogMovie
from implementation.classes.schemas import Candidate


def _row(**overrides) -> dict:
    row = {
        "id": "161",
        "title": "Ocean's Eleven",
        "genres": "Crime, Thriller",
        "overview": "Danny Ocean plans a casino heist.",
        "release_date": "2001-12-07",
        "vote_average": "7.4",
        "keywords": "heist, las vegas",
        "credits": "George Clooney",
        "tagline": "Are you in or out?",
        "production_companies": "Warner Bros.",
    }
    row.update(overrides)
    return row


def test_from_csv_row_maps_catalog_columns() -> None:
    """from_csv_row should rename TMDB columns and keep only the release year."""
    movie = CatalogMovie.from_csv_row(_row())
    assert movie is not None
    assert movie.id == "161"
    assert movie.genre == "Crime, Thriller"
    assert movie.description == "Danny Ocean plans a casino heist."
    assert movie.year == "2001"
    assert movie.rating == "7.4"


@pytest.mark.parametrize("overrides", [{"id": ""}, {"title": "   "}, {"id": None}])
def test_from_csv_row_skips_rows_without_identity(overrides) -> None:
    """Rows missing an id or a title cannot be ingested."""
    assert CatalogMovie.from_csv_row(_row(**overrides)) is None


def test_from_csv_row_defaults_missing_optional_fields() -> None:
    """Blank optional columns fall back to empty text, no year and an N/A rating."""
    movie = CatalogMovie.from_csv_row({"id": "1", "title": "Untitled", "release_date": "", "vote_average": ""})
    assert movie.year is None
    assert movie.rating == "N/A"
    assert movie.genre == ""


def test_embedding_text_skips_empty_fields() -> None:
    """embedding_text should join populated fields with single spaces."""
    movie = CatalogMovie(id="1", title="Heat", genre="Crime", year="1995", rating="8.3")
    assert movie.embedding_text() == "Heat Crime 1995 8.3"


def test_payload_validates_as_candidate() -> None:
    """The stored payload should read back as a displayable Candidate."""
    movie = CatalogMovie.from_csv_row(_row())
    candidate = Candidate.model_validate(movie.payload())
    assert str(candidate) == "Ocean's Eleven (2001) - Crime, Thriller"
    assert candidate.model_extra["rating"] == "7.4"
