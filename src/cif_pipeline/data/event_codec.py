"""Binary wire encoding for pathway events.

Events travel as a protobuf `google.protobuf.Struct` carrying the camelCase
JSON shape of the event, so every field round-trips unchanged.
"""

from google.protobuf import json_format, struct_pb2

from cif_pipeline.models.events import InfrastructurePathwayConfirmedEvent

CONTENT_TYPE = "application/x-protobuf"


def encode_event(event: InfrastructurePathwayConfirmedEvent) -> bytes:
    """Serialize an event to protobuf bytes."""
    message = struct_pb2.Struct()
    message.update(event.model_dump(mode="json", by_alias=True))
    return message.SerializeToString()


def decode_event(data: bytes) -> InfrastructurePathwayConfirmedEvent:
    """Parse protobuf bytes produced by `encode_event`.

    Raises:
        google.protobuf.message.DecodeError: If the bytes are not a Struct.
        pydantic.ValidationError: If the Struct is not an event.
    """
    message = struct_pb2.Struct()
    message.ParseFromString(data)
    return InfrastructurePathwayConfirmedEvent.model_validate(json_format.MessageToDict(message))
