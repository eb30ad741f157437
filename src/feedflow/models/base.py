"""模型基类."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """JSON 使用 camelCase 字段名，Python 侧使用 snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        """导出为 JSON 兼容的字典（camelCase，省略空的元数据字段）."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
