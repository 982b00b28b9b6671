"""
hostreg.stdlib — reusable building blocks for registry contracts.

    from hostreg.stdlib import access, address_set, string_map

- access       owner storage, owner/owner-context checks, `Ownable` base
- address_set  registered/removed address sets (library over storage)
- string_map   string key/value map (library over storage)
"""

from __future__ import annotations

from . import access, address_set, string_map

__all__ = ["access", "address_set", "string_map"]
