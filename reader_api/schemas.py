from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

# what /reader returns on success (and what the cache stores)
class ReaderResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    ok: bool = True
    title: str = ""
    byline: Optional[str] = None
    lead_image_url: Optional[str] = Field(default=None, alias="leadImageUrl")
    content_html: str = Field(alias="contentHtml")
    text_content: str = Field(alias="textContent")
    source: str = ""
    published_at: Optional[str] = Field(default=None, alias="publishedAt")
    url: str

    def wire(self) -> dict:
        return self.model_dump(by_alias=True)

# error body for 400/502/504
class ReaderFailure(BaseModel):
    ok: bool = False
    reason: str
    message: Optional[str] = None

class HealthResponse(BaseModel):
    ok: bool = True
    timestamp: str
