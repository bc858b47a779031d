"""
Canonicalizacion de texto libre para campos de identidad (fabricante, dispositivo).

Funcion pura: sin I/O, sin acceso a la hoja ni a Notion. Se ejecuta en
cada edicion sin disparar syncs re-entrantes.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

_WHITESPACE = re.compile(r"\s+")


class Canonicalizer:
    """
    Normaliza valores con una tabla de alias.

    Reglas:
    - trim + colapsar espacios internos
    - si el valor en minusculas coincide con un alias (exacto, sin
      importar mayusculas), retorna el canonico tal cual
    - si no, mayuscula inicial en cada palabra; el resto queda igual
    """

    def __init__(self, aliases: Optional[Mapping[str, str]] = None) -> None:
        # Claves normalizadas igual que la entrada para comparar.
        self._aliases = {_collapse(k).lower(): v for k, v in (aliases or {}).items()}

    def canonicalize(self, raw: Any) -> str:
        if raw is None:
            return ""
        text = _collapse(str(raw))
        if not text:
            return ""
        alias = self._aliases.get(text.lower())
        if alias is not None:
            return alias
        return " ".join(word[:1].upper() + word[1:] for word in text.split(" "))

    __call__ = canonicalize


def _collapse(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()
