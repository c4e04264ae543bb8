import contextlib

import pytest
from websockets.asyncio.server import serve

import sft_steam_toasts as sft

JS_CHUNK = (
    '(self.webpackChunksteamui=self.webpackChunksteamui||[]).push([[2dcc5aaf7],{'
    "1234:(e,t,n)=>{var V=12,H=8,j=16,q=283;var Q;function K(e){return Q||e}"
    ";const Oe=70,Ge=90;function Pe(e){return e?Oe:Ge}"
    'const s={Toast:"aBcDeF",DesktopToastContainer:"zXrpABNQHpWKgSzqnGlL",'
    'BackgroundAnimation:"gHiJkL"};}}]);\n'
)

CSS_CHUNK = (
    ".aBcDeF{position:absolute;width:283px}\n"
    ".zXrpABNQHpWKgSzqnGlL{display:flex}\n"
    "html,body{margin:0;padding:0;overflow:hidden}\n"
    "/*# sourceMappingURL=chunk~2dcc5aaf7.css.map*/\n"
)


@pytest.fixture(autouse=True)
def _tsv_log(tmp_path, monkeypatch):
    monkeypatch.setattr(sft, "_LOG", tmp_path / "sft_steam_toasts_log.tsv")


@pytest.fixture
def steam_dir(tmp_path):
    root = tmp_path / "steam"
    js = root / sft.CONFIG["js_chunk"]
    css = root / sft.CONFIG["css_chunk"]
    css.parent.mkdir(parents=True)
    js.write_text(JS_CHUNK, encoding="utf-8")
    css.write_text(CSS_CHUNK, encoding="utf-8")
    return root


@pytest.fixture
def js_path(steam_dir):
    return steam_dir / sft.CONFIG["js_chunk"]


@pytest.fixture
def css_path(steam_dir):
    return steam_dir / sft.CONFIG["css_chunk"]


@contextlib.asynccontextmanager
async def cdp_server(handler):
    """Local WebSocket server standing in for a CDP debug target."""
    async with serve(handler, "127.0.0.1", 0) as server:
        port = list(server.sockets)[0].getsockname()[1]
        yield f"ws://127.0.0.1:{port}/devtools/page/SharedJSContext"
