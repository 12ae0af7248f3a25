"""
Errores de la capa de store de documentos.

No son ``AppException``: nunca deben cruzar la frontera de los casos de uso.
"""

# Marcador documentado que los clientes de store incluyen en el mensaje
# cuando una consulta compuesta necesita un indice que no existe.
INDEX_REQUIRED_MARKER = "requires an index"


class StoreError(Exception):
    """Fallo generico del store de documentos."""


class IndexRequiredError(StoreError):
    """La consulta necesita un indice compuesto no declarado."""
    
    def __init__(self, collection: str, fields):
        self.collection = collection
        self.fields = tuple(fields)
        super().__init__(
            f"The query on '{collection}' {INDEX_REQUIRED_MARKER}: "
            f"({', '.join(self.fields)})"
        )


class DocumentNotFoundError(StoreError):
    """Se intento actualizar un documento que no existe."""
    
    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"No document to update: {collection}/{doc_id}")


class BatchCommitError(StoreError):
    """El lote no se pudo confirmar; no se aplicó ninguna escritura."""
