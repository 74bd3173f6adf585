import json
import os

import httpx
import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("BACKEND_URL", "http://postgrest.test")
os.environ.setdefault("ERROR_MESSAGE", "Error interno: ")

from sivoc_archivos.api.v1.filepond import get_filepond_service
from sivoc_archivos.clients.postgrest import PostgrestClient
from sivoc_archivos.core.config import settings
from sivoc_archivos.main import app
from sivoc_archivos.services.almacenamiento import AlmacenamientoLocal
from sivoc_archivos.services.archivo_metadata_service import ArchivoMetadataService
from sivoc_archivos.services.filepond_service import FilePondService


class FakePostgrest:
    """PostgREST en memoria: filtros eq., select y Prefer: return=representation."""

    def __init__(self):
        self.tables = {"archivo": []}
        self.next_id = 1
        self.fail = set()       # métodos HTTP que responden 500
        self.calls = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        params = dict(request.url.params)
        self.calls.append((request.method, request.url.path, dict(params), dict(request.headers)))
        if request.method in self.fail:
            return httpx.Response(500, json={"message": "boom"})
        if request.url.path == "/":
            return httpx.Response(200, json={"paths": {}})

        table = request.url.path.strip("/")
        if table not in self.tables:
            return httpx.Response(404, json={"message": f"relation {table} does not exist"})
        rows = self.tables[table]

        select = params.pop("select", None)
        filters = {k: v[len("eq."):] for k, v in params.items() if v.startswith("eq.")}
        matched = [r for r in rows if all(str(r.get(k)) == v for k, v in filters.items())]

        if request.method == "GET":
            if select:
                cols = select.split(",")
                matched = [{c: r.get(c) for c in cols} for r in matched]
            return httpx.Response(200, json=matched)

        if request.method == "POST":
            row = json.loads(request.content)
            row["id"] = self.next_id
            self.next_id += 1
            rows.append(row)
            if request.headers.get("prefer") == "return=representation":
                return httpx.Response(201, json=[row])
            return httpx.Response(201)

        if request.method == "DELETE":
            self.tables[table] = [r for r in rows if r not in matched]
            return httpx.Response(204)

        return httpx.Response(405)

    @property
    def archivos(self):
        return self.tables["archivo"]

    def calls_to(self, method):
        return [c for c in self.calls if c[0] == method]


@pytest.fixture
def fake_store():
    return FakePostgrest()


@pytest.fixture
def postgrest(fake_store):
    client = PostgrestClient(settings.BACKEND_URL, transport=httpx.MockTransport(fake_store))
    yield client
    client.close()


@pytest.fixture
def uploads_dir(tmp_path):
    return tmp_path / "uploads" / "permiso"


@pytest.fixture
def storage(uploads_dir):
    return AlmacenamientoLocal(uploads_dir)


@pytest.fixture
def service(postgrest, storage):
    return FilePondService(settings, ArchivoMetadataService(postgrest), storage)


@pytest.fixture
def client(service):
    app.dependency_overrides[get_filepond_service] = lambda: service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def upload(client):
    def _upload(name="report.pdf", content=b"%PDF-1.4 test", mime="application/pdf", **form):
        data = {"entidad_nombre": "permiso", **form}
        return client.post(
            f"{settings.FILEPOND_PREFIX}/upload",
            files={"filepond": (name, content, mime)},
            data=data,
        )
    return _upload
