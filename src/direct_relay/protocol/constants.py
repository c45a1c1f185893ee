# Outbound frame types (inbound frames are recognized by shape, not by a type field)

T_REGISTERED = "registered"
T_ERROR = "error"
T_DELIVERED = "delivered"

# Human-readable reasons carried by error frames
ERR_INVALID_FORMAT = "Invalid message format"
ERR_USERNAME_TAKEN = "Username already in use"
ERR_NOT_REGISTERED = "Please register first"
ERR_RECIPIENT_NOT_FOUND = "Recipient not found or offline"
ERR_ALREADY_REGISTERED = "Already registered"
ERR_UNRECOGNIZED = "Unrecognized message"
ERR_RECIPIENT_UNAVAILABLE = "Recipient is not accepting messages"
