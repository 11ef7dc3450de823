from tt.util.misc import now_iso

__all__ = ["now_iso"]
