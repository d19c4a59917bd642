"""
Pydantic models for the line-delimited wire format.

These define the contract with whoever feeds the worker:
- Job: one line read from stdin, what to render
- Result: one line written to stdout/stderr, what happened

Field names on the wire are camelCase (imageWidth, thumbWidth) because
that's what callers send; in Python we use snake_case via aliases.

Example input line:
    {"id": 7, "filename": "/photos/IMG_0001.CR2", "imageWidth": 6000, "thumbWidth": 400}

Example output lines:
    {"id":7,"error":"","response":{"preview":"/tmp/tmpa1b2","thumbnail":"/tmp/tmpc3d4"}}
    {"id":8,"error":"File does not exist","response":{"preview":"","thumbnail":""}}
"""

from pydantic import BaseModel, Field, PrivateAttr


class Job(BaseModel):
    """One unit of work. Immutable once parsed."""

    id: int
    # Missing filename → "", which then fails as a nonexistent source
    filename: str = ""
    # Both widths are caller-declared metadata; missing → 0
    image_width: int = Field(default=0, ge=0, alias="imageWidth")
    thumb_width: int = Field(default=0, ge=0, alias="thumbWidth")

    model_config = {"frozen": True, "populate_by_name": True}


class DerivativePaths(BaseModel):
    """Where the two JPEGs ended up. Empty strings on failure."""

    preview: str = ""
    thumbnail: str = ""


class Result(BaseModel):
    """Outcome of exactly one job: either error or both paths are set."""

    id: int
    error: str = ""
    response: DerivativePaths = Field(default_factory=DerivativePaths)

    # Not serialized: tells the writer to delete the outputs once reported
    _discard_outputs: bool = PrivateAttr(default=False)

    @classmethod
    def success(cls, job_id: int, preview: str, thumbnail: str) -> "Result":
        return cls(id=job_id, response=DerivativePaths(preview=preview, thumbnail=thumbnail))

    @classmethod
    def failure(cls, job_id: int, error: str) -> "Result":
        return cls(id=job_id, error=error)

    @property
    def ok(self) -> bool:
        return not self.error

    @property
    def discard_outputs(self) -> bool:
        return self._discard_outputs

    def mark_for_discard(self) -> None:
        self._discard_outputs = True

    def output_paths(self) -> list[str]:
        return [p for p in (self.response.preview, self.response.thumbnail) if p]
