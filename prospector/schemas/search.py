from pydantic import BaseModel, ConfigDict


class SearchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str  # cleaned, tracking params stripped
    title: str = "No title"
    description: str = "No description"
    source_query: str = ""
    source: str = "google_search"
