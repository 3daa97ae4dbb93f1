from typing import Any, Optional
from pydantic import BaseModel, ConfigDict


class CatalogMovie(BaseModel):
    """
    One row of the movie catalog, as stored in the vector collection payload.

    Every field is text so the payload round-trips through CSV and Qdrant
    unchanged. `genre` and `year` are the names the recommendation display reads.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    genre: str = ""
    description: str = ""
    year: Optional[str] = None
    rating: str = "N/A"
    keywords: str = ""
    credits: str = ""
    tagline: str = ""
    production_companies: str = ""

    @classmethod
    def from_csv_row(cls, row: dict[str, Any]) -> Optional["CatalogMovie"]:
        """
        Build a CatalogMovie from a raw CSV row (TMDB export column names).

        Returns None when the row has no id or no title.
        """
        movie_id = (row.get("id") or "").strip()
        title = (row.get("title") or "").strip()
        if not movie_id or not title:
            return None

        release_date = (row.get("release_date") or "").strip()
        year = release_date.split("-")[0] if release_date else None

        return cls(
            id=movie_id,
            title=title,
            genre=row.get("genres") or "",
            description=row.get("overview") or "",
            year=year or None,
            rating=row.get("vote_average") or "N/A",
            keywords=row.get("keywords") or "",
            credits=row.get("credits") or "",
            tagline=row.get("tagline") or "",
            production_companies=row.get("production_companies") or "",
        )

    def embedding_text(self) -> str:
        """Text embedded for similarity search: every descriptive field, in a fixed order."""
        parts = [
            self.title,
            self.genre,
            self.description,
            self.year or "",
            self.rating,
            self.keywords,
            self.credits,
            self.tagline,
            self.production_companies,
        ]
        return " ".join(part for part in parts if part)

    def payload(self) -> dict[str, Any]:
        return self.model_dump()
