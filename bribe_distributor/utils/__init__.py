from bribe_distributor.utils.formatters import (
    console,
    format_address,
    format_timestamp,
    generate_timestamped_filename,
    save_json_output,
)

__all__ = [
    "console",
    "format_address",
    "format_timestamp",
    "generate_timestamped_filename",
    "save_json_output",
]
