from pydantic import BaseModel, ConfigDict
from typing import Any, Dict, List

class AnnotateRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    task_id: str
    file_content: str
    annotation_type: str

class AnnotateResponse(BaseModel):
    success: bool = True
    task_id: str
    annotations: List[Dict[str, Any]]
    total_processed: int

class AnnotateError(BaseModel):
    success: bool = False
    error: str
