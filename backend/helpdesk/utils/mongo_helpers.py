# helpdesk/utils/mongo_helpers.py

def strip_mongo_id(doc):
    """
    Quita el `_id` interno de Mongo (ObjectId) para devolver solo el id propio.
    Soporta dicts y listas de dicts.
    """
    if not doc:
        return doc
    if isinstance(doc, list):
        return [strip_mongo_id(d) for d in doc]
    if isinstance(doc, dict):
        return {k: v for k, v in doc.items() if k != "_id"}
    return doc
