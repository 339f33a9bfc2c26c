import uuid


def new_batch_id() -> str:
    return str(uuid.uuid4())
