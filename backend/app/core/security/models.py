"""
Access roles
"""

import enum


class Role(str, enum.Enum):
    USER = "USER"  # investor / wallet holder
    ADMIN = "ADMIN"  # back office: reviews, properties, profits
    OPS = "OPS"  # system actor recorded on automated audit rows
