# Client → Server block list
MSG_LOAD = "load"
MSG_GET_BLOCKS = "get_blocks"
MSG_ADD_BLOCK = "add_block"
MSG_REMOVE_BLOCK = "remove_block"

# Client → Server pointer gesture
MSG_POINTER_DOWN = "pointer_down"
MSG_POINTER_ENTER = "pointer_enter"
MSG_POINTER_UP = "pointer_up"
MSG_POINTER_LEAVE = "pointer_leave"      # pointer left the window
MSG_POINTER_RELEASE = "pointer_release"  # release seen anywhere on the page

# Client → Server schedule generation
MSG_GENERATE = "generate"
MSG_CANCEL_GENERATE = "cancel_generate"

# Server → Client
MSG_BLOCKS = "blocks"
MSG_GRID_DELTA = "grid_delta"
MSG_REJECTED = "rejected"
MSG_SCHEDULE = "schedule"
MSG_ERROR = "error"
