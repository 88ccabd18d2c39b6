from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class PatchSchema(BaseModel):
    # Patches reject unknown keys so that read-only fields (e.g. total_amount)
    # cannot be smuggled into an update.
    model_config = ConfigDict(extra="forbid")
