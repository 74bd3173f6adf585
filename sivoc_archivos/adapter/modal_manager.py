# sivoc_archivos/adapter/modal_manager.py
from __future__ import annotations

import logging
import webbrowser
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from sivoc_archivos.adapter.client import FilePondClient
from sivoc_archivos.adapter.server_config import default_options
from sivoc_archivos.schemas.archivos import FilePondOptions

log = logging.getLogger(__name__)


class RenderedFile(BaseModel):
    """Entrada ya dibujada de un archivo en la lista del widget."""
    legend: str = ""
    info_main: str = ""
    status_main: str = ""
    filename: Optional[str] = None
    server_id: Optional[str] = None
    click_added: bool = False
    on_click: Optional[Callable[[], Any]] = None

    def click(self, on_action_button: bool = False) -> None:
        # Los botones de acción (quitar, revertir) tienen su propio handler
        if on_action_button or self.on_click is None:
            return
        self.on_click()


def nombre_visible(entry: RenderedFile) -> str:
    """Nombre legible de la entrada: legend → info → status con '.' → archivo."""
    nombre = (entry.legend or "").strip()
    if not nombre:
        nombre = (entry.info_main or "").strip()
    if not nombre and "." in (entry.status_main or ""):
        nombre = entry.status_main.strip()
    if not nombre and entry.filename:
        nombre = entry.filename
    return nombre


class Modal(BaseModel):
    modal_id: str
    visible: bool = True
    data: Dict[str, Any] = Field(default_factory=dict)


class Pond:
    """Instancia del widget de un modal. Avisa con ``on_rendered`` cada archivo dibujado."""

    def __init__(
        self,
        client: FilePondClient,
        options: FilePondOptions,
        on_rendered: Callable[[RenderedFile], None],
    ):
        self.client = client
        self.options = options
        self.on_rendered = on_rendered
        self.files: List[RenderedFile] = []
        self.destroyed = False

    def _render(self, nombre: str, server_id: str) -> RenderedFile:
        entry = RenderedFile(legend=nombre, filename=nombre, server_id=server_id)
        self.files.append(entry)
        self.on_rendered(entry)
        return entry

    def add_file(self, server_id: str, nombre: Optional[str] = None) -> RenderedFile:
        """Archivo ya existente en el servidor (origen ``local``)."""
        return self._render(nombre or server_id, server_id)

    def process_file(self, filename: str, content: bytes, content_type: str) -> RenderedFile:
        if len(self.files) >= self.options.max_files:
            raise ValueError(f"Máximo {self.options.max_files} archivos")
        server_id = self.client.process(filename, content, content_type)
        return self._render(filename, server_id)

    def remove_file(self, server_id: str) -> None:
        self.client.remove(server_id)
        self.files = [f for f in self.files if f.server_id != server_id]

    def destroy(self) -> None:
        self.files.clear()
        self.destroyed = True


class ModalManager:
    """
    Registro explícito de modales abiertos y de sus instancias del widget.
    Cerrar un modal destruye su widget.
    """

    def __init__(self, client: FilePondClient, opener: Callable[[str], Any] = webbrowser.open_new_tab):
        self.client = client
        self.opener = opener
        self.active_modals: Dict[str, Modal] = {}
        self.ponds: Dict[str, Pond] = {}

    # Modales
    def open_modal(self, modal_id: str, **data) -> Modal:
        modal = Modal(modal_id=modal_id, data=data)
        self.active_modals[modal_id] = modal
        return modal

    def close_modal(self, modal_id: str) -> bool:
        modal = self.active_modals.pop(modal_id, None)
        if modal is None:
            log.debug("closeModal: modal %s no está abierto", modal_id)
            return False
        modal.visible = False
        self.destroy_pond(modal_id)
        return True

    # Widget
    def create_pond(self, modal_id: str, **options) -> Pond:
        self.destroy_pond(modal_id)
        pond = Pond(
            self.client,
            default_options(**options),
            on_rendered=lambda entry: self.file_rendered(modal_id, entry),
        )
        self.ponds[modal_id] = pond
        return pond

    def destroy_pond(self, modal_id: str) -> None:
        pond = self.ponds.pop(modal_id, None)
        if pond is not None:
            pond.destroy()

    def load_existing_files(self, modal_id: str, entidad_id: Optional[str] = None) -> List[RenderedFile]:
        pond = self.ponds.get(modal_id)
        if pond is None:
            return []
        return [pond.add_file(f.server_id) for f in self.client.list_files(entidad_id)]

    # Click para ver
    def file_rendered(self, modal_id: str, entry: RenderedFile) -> None:
        if entry.click_added:
            return
        # el endpoint de vista busca por nombre almacenado; el visible es respaldo
        nombre = entry.server_id or nombre_visible(entry)
        if not nombre:
            return
        entry.on_click = lambda: self.view_file(nombre)
        entry.click_added = True

    def view_file(self, nombre: str) -> str:
        url = self.client.view_url(nombre)
        self.opener(url)
        return url
