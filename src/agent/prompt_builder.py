from tools.world_time import TOOL_NAME

SYSTEM_PROMPT = (
    "You are a precise World Time Assistant.\n"
    "Your primary goal is to provide the current time for requested cities.\n\n"
    "RULES:\n"
    "1. ALWAYS use the '{tool_name}' tool when a user mentions a city.\n"
    "2. ALWAYS format the time in 24-hour HH:MM format (e.g., 14:30 instead of 2:30 PM).\n"
    "3. If a city is not supported by the tool, your response must be exactly: '{unknown_reply}'\n"
    "4. Keep responses brief and professional.\n"
    "\n"
    "AVAILABLE TOOLS:\n{tool_list}\n"
)

UNKNOWN_CITY_REPLY = "I don't know."


def build_sys_prompt(tool_list_text: str = "", *, tool_name: str = TOOL_NAME) -> str:
    return SYSTEM_PROMPT.format(
        tool_name=tool_name,
        unknown_reply=UNKNOWN_CITY_REPLY,
        tool_list=tool_list_text.strip() or "(no tools registered)",
    )
