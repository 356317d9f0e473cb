from pydantic import BaseModel


class FileStorageInstanceResponse(BaseModel):
    description: str
    storage_service: str
    id_mapper: str
