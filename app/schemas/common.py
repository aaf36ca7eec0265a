from pydantic import BaseModel, ConfigDict


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class PatchModel(BaseModel):
    """Cuerpo de actualización: solo los campos declarados, el resto se ignora."""
    model_config = ConfigDict(extra="ignore")

    def cambios(self) -> dict:
        return self.model_dump(exclude_unset=True)
