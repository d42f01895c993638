"""Declarative descriptor table: one row per proxied endpoint.

Each resource is a tuple of ``Endpoint`` rows. The generic engine reads a row
to know where to send the call, which query keys may pass, which body fields
must be present, and which message to fall back on.
"""

from __future__ import annotations

from dataclasses import dataclass
from string import Formatter
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from kilometracker.proxy.envelope import INTERNAL_ERROR_MESSAGE, MISSING_FIELDS_MESSAGE

if TYPE_CHECKING:
    from collections.abc import Callable

BODY_METHODS = frozenset({"POST", "PUT"})
DATE_RANGE_KEYS = ("startDate", "endDate")
MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class Endpoint:
    """How one inbound route maps onto one backend call."""

    name: str
    method: str
    route: str
    backend_path: str
    failure_message: str
    query_keys: tuple[str, ...] = ()
    required_fields: tuple[str, ...] = ()
    missing_fields_message: str = MISSING_FIELDS_MESSAGE
    error_field: str = "message"
    requires_session: bool = True
    date_range: tuple[str, str] | None = None
    body_check: Callable[[dict[str, Any]], str | None] | None = None
    body_fields: tuple[str, ...] | None = None
    crash_message: str | None = None

    @property
    def sends_body(self) -> bool:
        return self.method in BODY_METHODS

    @property
    def exception_context(self) -> str:
        """Prefix for the 500 envelope when no backend response exists."""
        return self.crash_message or self.failure_message

    @property
    def path_params(self) -> tuple[str, ...]:
        return tuple(field for _, field, _, _ in Formatter().parse(self.backend_path) if field)

    def backend_url_path(self, path_params: dict[str, str]) -> str:
        """Fill the backend template; each value is quoted as a single segment."""
        quoted = {name: quote(str(path_params[name]), safe="") for name in self.path_params}
        return self.backend_path.format(**quoted)


def _check_new_password(body: dict[str, Any]) -> str | None:
    new_password = body.get("newPassword")
    if isinstance(new_password, str) and len(new_password) < MIN_PASSWORD_LENGTH:
        return f"La nueva contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres"
    return None


def _item_endpoints(
    resource: str,
    key: str,
    noun: str,
    error_field: str = "message",
) -> tuple[Endpoint, ...]:
    """GET/PUT/DELETE on ``/api/<resource>/{key}``."""
    path = f"/api/{resource}/{{{key}}}"
    return (
        Endpoint(f"{resource}.get", "GET", path, path, f"Error al obtener {noun}",
                 error_field=error_field),
        Endpoint(f"{resource}.update", "PUT", path, path, f"Error al actualizar {noun}",
                 error_field=error_field),
        Endpoint(f"{resource}.delete", "DELETE", path, path, f"Error al eliminar {noun}",
                 error_field=error_field),
    )


VEHICLES: tuple[Endpoint, ...] = (
    Endpoint(
        "vehicles.list", "GET", "/api/vehicles", "/api/vehicles",
        "Error al obtener vehículos",
        query_keys=("includeInactive", "isActive"),
    ),
    Endpoint(
        "vehicles.create", "POST", "/api/vehicles", "/api/vehicles",
        "Error al crear el vehículo",
        required_fields=("alias", "marca", "modelo", "plates"),
    ),
    Endpoint(
        "vehicles.reactivate", "PATCH",
        "/api/vehicles/{alias}/reactivate", "/api/vehicles/{alias}/reactivate",
        "Error al reactivar el vehículo",
    ),
    Endpoint(
        "vehicles.stats", "GET",
        "/api/vehicles/{alias}/stats", "/api/vehicles/{alias}/stats",
        "Error al obtener estadísticas",
    ),
    Endpoint(
        "vehicles.fuel_efficiency", "GET",
        "/api/vehicles/{alias}/fuel-efficiency", "/api/vehicles/{alias}/fuel-efficiency",
        "Error al obtener eficiencia de combustible",
        query_keys=DATE_RANGE_KEYS,
        date_range=DATE_RANGE_KEYS,
    ),
    *_item_endpoints("vehicles", "alias", "el vehículo"),
)

ROUTES: tuple[Endpoint, ...] = (
    Endpoint(
        "routes.list", "GET", "/api/routes", "/api/routes",
        "Error al obtener rutas",
        query_keys=("vehicleAlias", *DATE_RANGE_KEYS),
        date_range=DATE_RANGE_KEYS,
    ),
    Endpoint(
        "routes.create", "POST", "/api/routes", "/api/routes",
        "Error al crear la ruta",
        required_fields=("vehicleAlias", "distanciaRecorrida", "fecha"),
    ),
    *_item_endpoints("routes", "id", "la ruta"),
)

REFUELS: tuple[Endpoint, ...] = (
    Endpoint(
        "refuels.list", "GET", "/api/refuels", "/api/refuels",
        "Error al obtener reabastecimientos",
        query_keys=("vehicleAlias",),
    ),
    Endpoint(
        "refuels.create", "POST", "/api/refuels", "/api/refuels",
        "Error al crear el reabastecimiento",
        required_fields=("vehicleAlias", "tipoCombustible", "cantidadGastada"),
    ),
    Endpoint(
        "refuels.analysis", "GET",
        "/api/refuels/vehicle/{alias}/analysis", "/api/refuels/vehicle/{alias}/analysis",
        "Error al obtener análisis de consumo",
    ),
    *_item_endpoints("refuels", "id", "el reabastecimiento"),
)

# Maintenance records are hard-deleted and report failures in ``error``.
MAINTENANCE: tuple[Endpoint, ...] = (
    Endpoint(
        "maintenance.list", "GET", "/api/maintenance", "/api/maintenance",
        "Error al obtener mantenimientos",
        query_keys=("vehicleAlias", "tipo", *DATE_RANGE_KEYS),
        error_field="error",
        date_range=DATE_RANGE_KEYS,
    ),
    Endpoint(
        "maintenance.create", "POST", "/api/maintenance", "/api/maintenance",
        "Error al crear el mantenimiento",
        error_field="error",
    ),
    Endpoint(
        "maintenance.upcoming", "GET",
        "/api/maintenance/upcoming", "/api/maintenance/upcoming",
        "Error al obtener mantenimientos próximos",
        error_field="error",
    ),
    *_item_endpoints("maintenance", "id", "mantenimiento", error_field="error"),
)

EXPENSES: tuple[Endpoint, ...] = (
    Endpoint(
        "expenses.list", "GET", "/api/expenses", "/api/expenses",
        "Error al obtener gastos",
        query_keys=(
            "vehicleAlias",
            "categoria",
            *DATE_RANGE_KEYS,
            "esDeducibleImpuestos",
            "isActive",
        ),
        date_range=DATE_RANGE_KEYS,
    ),
    Endpoint(
        "expenses.create", "POST", "/api/expenses", "/api/expenses",
        "Error al crear gasto",
        required_fields=("vehicleAlias", "categoria", "monto", "descripcion"),
    ),
    Endpoint(
        "expenses.summary", "GET", "/api/expenses/summary", "/api/expenses/summary",
        "Error al obtener resumen de gastos",
        query_keys=("vehicleAlias", *DATE_RANGE_KEYS),
        date_range=DATE_RANGE_KEYS,
    ),
    Endpoint(
        "expenses.upcoming", "GET", "/api/expenses/upcoming", "/api/expenses/upcoming",
        "Error al obtener gastos próximos",
        query_keys=("vehicleAlias", "days"),
    ),
    *_item_endpoints("expenses", "id", "gasto"),
)

LOGIN = Endpoint(
    "auth.login", "POST", "/api/auth/login", "/api/auth/login",
    "Error de autenticación",
    required_fields=("email", "password"),
    missing_fields_message="Email y password son requeridos",
    requires_session=False,
    body_fields=("email", "password"),
    crash_message=INTERNAL_ERROR_MESSAGE,
)

USERS: tuple[Endpoint, ...] = (
    Endpoint(
        "auth.register", "POST", "/api/auth/register", "/api/auth/register",
        "Error al registrar usuario",
        required_fields=("username", "email", "password"),
        requires_session=False,
    ),
    Endpoint(
        "auth.me", "GET", "/api/auth/me", "/api/auth/me",
        "Error al obtener perfil",
    ),
    Endpoint(
        "auth.update_profile", "PUT", "/api/auth/updateprofile", "/api/auth/updateprofile",
        "Error al actualizar perfil",
    ),
    Endpoint(
        "auth.update_password", "PUT", "/api/auth/updatepassword", "/api/auth/updatepassword",
        "Error al cambiar contraseña",
        required_fields=("currentPassword", "newPassword"),
        missing_fields_message="Contraseña actual y nueva son requeridas",
        body_check=_check_new_password,
    ),
    Endpoint(
        "users.list", "GET", "/api/auth/users", "/api/auth/users",
        "Error al obtener usuarios",
        query_keys=("isActive",),
    ),
    Endpoint(
        "users.get", "GET", "/api/auth/users/{id}", "/api/auth/users/{id}",
        "Error al obtener usuario",
    ),
    Endpoint(
        "users.deactivate", "DELETE", "/api/auth/users/{id}", "/api/auth/users/{id}",
        "Error al desactivar usuario",
    ),
    Endpoint(
        "users.reactivate", "PATCH", "/api/auth/users/{id}", "/api/auth/users/{id}/reactivate",
        "Error al reactivar usuario",
    ),
    Endpoint(
        "users.change_role", "PUT", "/api/auth/users/{id}/role", "/api/auth/users/{id}/role",
        "Error al cambiar rol",
    ),
)

# Registration order matters: fixed segments such as ``upcoming`` come before
# the ``{id}`` rows of the same resource.
RESOURCES: dict[str, tuple[Endpoint, ...]] = {
    "vehicles": VEHICLES,
    "routes": ROUTES,
    "refuels": REFUELS,
    "maintenance": MAINTENANCE,
    "expenses": EXPENSES,
    "users": USERS,
}


def all_endpoints() -> tuple[Endpoint, ...]:
    """Every table row plus login, in registration order."""
    return (LOGIN, *(endpoint for rows in RESOURCES.values() for endpoint in rows))
