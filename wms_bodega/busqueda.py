"""Búsqueda "inteligente" por nombre (preparadores, rechequeadores, empresas).

Un nombre coincide con el término si se cumple cualquiera de:

- el término completo está contenido en el nombre;
- cada palabra del término está contenida en alguna palabra del nombre;
- el término sin espacios está contenido en las iniciales del nombre;
- el nombre sin espacios contiene el término sin espacios;
- las palabras del término aparecen en orden dentro del nombre.
"""
import re

_WS = re.compile(r"\s+")


def _palabras(texto: str) -> list[str]:
    return [p for p in _WS.split(texto) if p]


def coincide_nombre(nombre, termino) -> bool:
    if nombre is None:
        return False
    nombre = str(nombre).lower().strip()
    termino = str(termino or "").lower().strip()
    if not termino:
        return True
    if not nombre:
        return False

    if termino in nombre:
        return True

    palabras_busqueda = _palabras(termino)
    palabras_nombre = _palabras(nombre)

    if all(any(pb in pn for pn in palabras_nombre) for pb in palabras_busqueda):
        return True

    compacto = _WS.sub("", termino)
    iniciales = "".join(p[0] for p in palabras_nombre)
    if compacto in iniciales:
        return True

    if compacto in _WS.sub("", nombre):
        return True

    indice = 0
    for palabra in palabras_busqueda:
        indice = nombre.find(palabra, indice)
        if indice == -1:
            return False
    return True


def filtrar(items: list[dict], termino, campo: str) -> list[dict]:
    termino = str(termino or "").strip()
    if not termino:
        return list(items)
    return [it for it in items if coincide_nombre(it.get(campo), termino)]
