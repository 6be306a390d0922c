from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InlineData(CamelModel):
    mime_type: str
    data: str


class Part(CamelModel):
    text: str | None = None
    inline_data: InlineData | None = None


class Content(CamelModel):
    role: str = "user"
    parts: list[Part] = Field(min_length=1)


class GenerationConfig(CamelModel):
    temperature: float = 0.7
    top_k: int = 40
    top_p: float = 0.95
    max_output_tokens: int = 2048


class GenerationRequest(CamelModel):
    contents: list[Content] = Field(min_length=1)
    generation_config: GenerationConfig | None = None


class ParseQuizRequest(BaseModel):
    text: str
