import re

_WORKER_RE = re.compile(r"^gw(\d+)$")


def get_lane_num(worker_id: str) -> int:
    """Return number of the execution lane for the given pytest-xdist worker id.

    The controller process ("master") and a run without xdist use lane 0.
    """
    reg = _WORKER_RE.match(worker_id)
    if not reg:
        return 0
    return int(reg.group(1))
