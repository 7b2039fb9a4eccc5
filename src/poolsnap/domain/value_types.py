from __future__ import annotations
from typing import NewType, Literal

Address = NewType("Address", str)   # pool address as listed in the source file
ProtocolVersion = Literal["v2", "v3"]
Status = Literal["done", "failed"]

DEX_NAME = "Pancake"
