"""text-bbs: a menu-driven bulletin board served to line-mode terminals."""

__version__ = "0.1.0"
