from aclctl.domain.resolution.prefix_resolver import kind_label, resolve_prefix

__all__ = ["kind_label", "resolve_prefix"]
