"""
Mapeos Hoja -> Notion por tabla.

Este es el punto recomendado para tener "control total" sobre:
- que columnas de la hoja (formato de importacion RepairDesk) se sincronizan
- con que propiedad de Notion se corresponde cada una
- que tipo se usa para convertir los valores

Patron sugerido:
- Ajusta remote_name al nombre real de la propiedad en tu base Notion.
- Cada tabla (pestaña) tiene su propia base de datos Notion.
"""

from __future__ import annotations

from stocksync.domain.entities import FieldMap, FieldMapping, FieldType


# Orden exacto de columnas del import de productos de RepairDesk.
PRODUCT_HEADERS: tuple[str, ...] = (
    "Item ID",
    "Parent ID",
    "Serial Number",
    "Category",
    "Item Name",
    "Description",
    "Manufacturer",
    "Device",
    "SKU",
    "Supplier",
    "Multiple Supplier SKUs",
    "UPC",
    "Manage Inventory level",
    "Valuation Method",
    "Manage Serials",
    "On Hand Qty",
    "New Stock Adjustment",
    "Cost Price",
    "Retail Price",
    "Online Price",
    "Promotional Price",
    "Minimum Price",
    "Tax Class",
    "Tax Inclusive",
    "Stock Warning",
    "Re-Order Level",
    "Condition",
    "Physical Location",
    "Warranty",
    "Warranty Time Frame",
    "IMEI",
    "Display On Point of Sale",
    "Commission Percentage",
    "Commission Amount",
    "Size",
    "Color",
    "Network",
)

# Columnas sujetas a canonicalizacion (alias + title case) al editarse.
CANONICAL_COLUMNS: tuple[str, ...] = ("Manufacturer", "Device")

# Alias de fabricantes -> nombre canonico.
MANUFACTURER_ALIASES: dict[str, str] = {
    "apple inc": "Apple",
    "apple pty ltd": "Apple",
    "samsung electronics": "Samsung",
    "oppo": "OPPO",
    "vivo": "VIVO",
    "xiaomi corp": "Xiaomi",
}

_POS_FLAGS = ("Show on POS", "Show on widgets")


def products_field_map() -> FieldMap:
    """
    Productos: "Item ID" es el title de Notion; todo lo demas texto.

    La identidad de fila para el push es "Item Name": el Item ID lo asigna
    RepairDesk y suele estar vacio en productos nuevos.
    """
    mappings = [FieldMapping("Item ID", "Item ID", FieldType.TITLE)]
    mappings += [FieldMapping(h, h, FieldType.TEXT) for h in PRODUCT_HEADERS if h != "Item ID"]
    mappings.append(FieldMapping("Notes", "Notes", FieldType.TEXT))
    return FieldMap(table_name="Products", mappings=tuple(mappings), identity_field="Item Name")


def manufacturers_field_map() -> FieldMap:
    return FieldMap(
        table_name="Manufacturers",
        mappings=(
            FieldMapping("Manufacturer", "Manufacturer", FieldType.TITLE),
            *(FieldMapping(h, h, FieldType.BOOLEAN) for h in _POS_FLAGS),
        ),
    )


def devices_field_map() -> FieldMap:
    return FieldMap(
        table_name="Devices",
        mappings=(
            FieldMapping("Device", "Device", FieldType.TITLE),
            FieldMapping("Manufacturer", "Manufacturer", FieldType.TEXT),
            *(FieldMapping(h, h, FieldType.BOOLEAN) for h in _POS_FLAGS),
        ),
    )


_FIELD_MAPS = {
    "Products": products_field_map,
    "Manufacturers": manufacturers_field_map,
    "Devices": devices_field_map,
}


def available_tables() -> list[str]:
    return list(_FIELD_MAPS)


def get_field_map(table_name: str) -> FieldMap:
    """
    Retorna el mapeo de la tabla indicada.

    IMPORTANTE:
    - Edita este archivo para reflejar tu base de datos Notion real.
    """
    try:
        factory = _FIELD_MAPS[table_name]
    except KeyError:
        raise KeyError(
            f"Tabla '{table_name}' sin mapeo. Disponibles: {', '.join(available_tables())}"
        ) from None
    return factory()
