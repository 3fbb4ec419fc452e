from __future__ import annotations

from enum import Enum

SERVICE_NAME = "Scrummy"
GENERATED_ROOM_NUMBER_LIMIT = 100_000
ROOM_SUMMARY_LIMIT = 50


class Command(str, Enum):
    SIGN_IN = "signIn"
    PLACE_VOTE = "placeVote"
    REVEAL = "reveal"
    RESET = "reset"
    REVOKE_VOTE = "revokeVote"
    DISCONNECT = "disconnect"
    GET_PLAYER_COUNT = "getPlayerCount"


class Outbound(str, Enum):
    ERROR = "error"
    YOU_SIGNED_IN = "youSignedIn"
    SOMEONE_SIGNED_IN = "someoneSignedIn"
    YOU_VOTED = "youVoted"
    SOMEONE_VOTED = "someoneVoted"
    REVEAL = "reveal"
    RESET = "reset"
    CLIENT_REVOKE = "clientRevoke"
    CLIENT_DISCONNECT = "clientDisconnect"
    PLAYER_COUNT = "playerCount"


NICKNAME_UNAVAILABLE_MESSAGE = "This username is unavailable; please pick another."
UNKNOWN_TYPE_MESSAGE = "{type} is not a message type " + SERVICE_NAME + " is prepared for!"
MALFORMED_MESSAGE = "Malformed message: {detail}"
ROOM_NOT_FOUND_MESSAGE = "{room} does not exist!"
INVALID_VOTE_MESSAGE = "{vote} is not a valid vote!"
NO_VOTES_TO_REVEAL_MESSAGE = "{nickname} has no votes to reveal!"
NO_VOTES_TO_REVOKE_MESSAGE = "{nickname} has no votes to revoke!"
NOT_A_MEMBER_MESSAGE = "{nickname} is not a part of {room}!"
UNEXPECTED_FAILURE_MESSAGE = "Something went wrong handling {type}"
