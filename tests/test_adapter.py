import httpx
import pytest

from sivoc_archivos.adapter.client import AdapterError, FilePondClient
from sivoc_archivos.adapter.modal_manager import ModalManager, RenderedFile, nombre_visible
from sivoc_archivos.adapter.server_config import build_server_config, view_url
from sivoc_archivos.core.config import settings

BASE = settings.FILEPOND_PREFIX


@pytest.fixture
def pond_client(client):
    return FilePondClient(client, base=BASE, entidad_id="42")


@pytest.fixture
def opened():
    return []


@pytest.fixture
def manager(pond_client, opened):
    return ModalManager(pond_client, opener=opened.append)


def _offline_client():
    def boom(request):
        raise httpx.ConnectError("offline", request=request)
    return FilePondClient(httpx.Client(base_url="http://gateway.test", transport=httpx.MockTransport(boom)))


# ── Callbacks de red ─────────────────────────────────────────────────────────

def test_process_sends_entity_fields(pond_client, fake_store):
    server_id = pond_client.process("acta.pdf", b"%PDF", "application/pdf")
    assert server_id.endswith("-acta.pdf")
    row = fake_store.archivos[0]
    assert (row["entidad_nombre"], row["entidad_id"]) == ("permiso", "42")


def test_process_rejected_type_raises(pond_client):
    with pytest.raises(AdapterError, match="File type not allowed"):
        pond_client.process("x.exe", b"MZ", "application/x-msdownload")


def test_load_returns_named_file(pond_client):
    server_id = pond_client.process("foto.png", b"\x89PNG", "image/png")
    loaded = pond_client.load(server_id)
    assert loaded.name == server_id
    assert loaded.type == "image/png"
    assert loaded.content == b"\x89PNG"
    assert loaded.size == 4


def test_load_missing_raises(pond_client):
    with pytest.raises(AdapterError, match="Error loading file"):
        pond_client.load("0-nada.png")


def test_revert_removes_file(pond_client):
    server_id = pond_client.process("foto.png", b"\x89PNG", "image/png")
    pond_client.revert(server_id)
    assert pond_client.list_files("42") == []


def test_network_failures_raise_adapter_errors():
    offline = _offline_client()
    with pytest.raises(AdapterError, match="Error deleting file"):
        offline.remove("1-a.pdf")
    with pytest.raises(AdapterError, match="Error loading file"):
        offline.load("1-a.pdf")
    assert offline.list_files("42") == []


def test_view_url_is_encoded():
    assert view_url("/filepond", "mi archivo#1.pdf") == "/filepond/view/mi%20archivo%231.pdf"


def test_build_server_config_without_entity():
    cfg = build_server_config(settings, base="https://sivoc.test/filepond/")
    assert cfg.process == "https://sivoc.test/filepond/upload"
    assert cfg.files == "https://sivoc.test/filepond/files"
    assert cfg.form_fields == {"entidad_nombre": "permiso", "entidad_id": None}
    assert cfg.options.min_file_size == "1KB"


# ── ModalManager ─────────────────────────────────────────────────────────────

def test_open_and_close_modal_destroys_pond(manager):
    manager.open_modal("descripcionModal", permisoId="42")
    pond = manager.create_pond("descripcionModal")
    assert manager.ponds["descripcionModal"] is pond

    assert manager.close_modal("descripcionModal") is True
    assert pond.destroyed
    assert "descripcionModal" not in manager.active_modals
    assert "descripcionModal" not in manager.ponds
    assert manager.close_modal("descripcionModal") is False


def test_create_pond_replaces_previous(manager):
    first = manager.create_pond("m")
    second = manager.create_pond("m", max_files=5)
    assert first.destroyed and not second.destroyed
    assert second.options.max_files == 5


def test_processed_file_opens_view_on_click(manager, opened):
    pond = manager.create_pond("m")
    entry = pond.process_file("informe.pdf", b"%PDF", "application/pdf")

    assert entry.click_added
    entry.click(on_action_button=True)
    assert opened == []

    entry.click()
    assert opened == [f"{BASE}/view/{entry.server_id}"]


def test_load_existing_files_wires_clicks(manager, pond_client, opened):
    a = pond_client.process("a.pdf", b"%PDF", "application/pdf")
    manager.create_pond("m")

    [entry] = manager.load_existing_files("m", "42")
    assert entry.server_id == a
    entry.click()
    assert opened == [f"{BASE}/view/{a}"]


def test_load_existing_files_without_pond(manager):
    assert manager.load_existing_files("sin-pond", "42") == []


def test_handler_attached_once(manager, opened):
    entry = RenderedFile(legend="a.pdf")
    manager.file_rendered("m", entry)
    first = entry.on_click
    manager.file_rendered("m", entry)
    assert entry.on_click is first


def test_max_files(manager):
    pond = manager.create_pond("m", max_files=1)
    pond.process_file("a.pdf", b"%PDF", "application/pdf")
    with pytest.raises(ValueError):
        pond.process_file("b.pdf", b"%PDF", "application/pdf")


def test_remove_file(manager, pond_client):
    pond = manager.create_pond("m")
    entry = pond.process_file("a.pdf", b"%PDF", "application/pdf")
    pond.remove_file(entry.server_id)
    assert pond.files == []
    assert pond_client.list_files("42") == []


def test_nombre_visible_fallbacks():
    assert nombre_visible(RenderedFile(legend=" a.pdf ", info_main="b.pdf")) == "a.pdf"
    assert nombre_visible(RenderedFile(info_main="b.pdf")) == "b.pdf"
    assert nombre_visible(RenderedFile(status_main="Cargando")) == ""
    assert nombre_visible(RenderedFile(status_main="c.pdf ")) == "c.pdf"
    assert nombre_visible(RenderedFile(filename="d.pdf")) == "d.pdf"


# ── Nombres almacenados con caracteres reservados de URL ─────────────────────

@pytest.mark.parametrize("nombre", ["informe#1.pdf", "acta?v2.pdf", "avance 100%.pdf"])
def test_revert_and_load_with_reserved_chars(pond_client, uploads_dir, nombre):
    server_id = pond_client.process(nombre, b"%PDF-1.7", "application/pdf")

    loaded = pond_client.load(server_id)
    assert loaded.name == server_id
    assert loaded.content == b"%PDF-1.7"

    pond_client.revert(server_id)
    assert pond_client.list_files("42") == []
    assert not (uploads_dir / server_id).exists()


def test_loaded_file_is_a_model(pond_client):
    server_id = pond_client.process("foto.png", b"\x89PNG", "image/png")
    loaded = pond_client.load(server_id)
    assert loaded.model_dump() == {"name": server_id, "type": "image/png", "content": b"\x89PNG"}
