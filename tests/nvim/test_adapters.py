from unittest import TestCase
from unittest.mock import MagicMock

from pum.nvim.client import Client, attach, on_request
from pum.nvim.pum import NvimPum
from pum.nvim.surfaces import (
    KEYMAP_EVENT,
    NvimDocs,
    NvimGhostText,
    NvimKeymap,
    border_w_h,
    display_width,
    positions,
    preprocess,
)
from pum.server.entries_view import EntriesInfo
from pum.server.runtime import load_settings
from pum.shared.types import Doc, Entry

_INFO = EntriesInfo(row=2, col=10, width=20, height=5, scrollbar=True)


class Helpers(TestCase):
    def test_1(self) -> None:
        self.assertEqual(display_width("abc"), 3)
        self.assertEqual(display_width("日本"), 4)

    def test_2(self) -> None:
        self.assertEqual(border_w_h((" ",) * 8), (2, 2))
        self.assertEqual(border_w_h(("", "", "", "", "", "", "", "")), (0, 0))
        self.assertEqual(border_w_h(()), (0, 0))

    def test_3(self) -> None:
        doc = Doc(text="```python\nx = 1\n```", syntax="markdown")
        new = preprocess(doc)
        self.assertEqual(new.text, "x = 1")
        self.assertEqual(new.syntax, "python")

    def test_4(self) -> None:
        doc = Doc(text="a &lt; b", syntax="markdown")
        self.assertEqual(preprocess(doc).text, "a < b")
        plain = Doc(text="a &lt; b", syntax="")
        self.assertIs(preprocess(plain), plain)

    def test_5(self) -> None:
        config = load_settings().documentation
        east, *_ = positions(config, info=_INFO, lines=("abc",), screen=(120, 40))
        self.assertEqual(east.col, 10 + 20 + 1 + 1)
        self.assertEqual(east.row, 2)
        self.assertEqual(east.width, 3)
        self.assertEqual(east.height, 1)

    def test_6(self) -> None:
        config = load_settings().documentation
        info = EntriesInfo(row=2, col=80, width=38, height=5, scrollbar=False)
        (west,) = positions(config, info=info, lines=("abc",), screen=(120, 40))
        self.assertLess(west.col + west.width, 80)


class Pum(TestCase):
    def test_1(self) -> None:
        nvim = MagicMock()
        pum = NvimPum(nvim)
        entry = Entry("word", source="lsp", kind="Function")

        pum.complete(3, (entry,))
        (col, items), _ = nvim.funcs.complete.call_args
        self.assertEqual(col, 4)
        (item,) = items
        self.assertEqual(item["word"], "word")
        self.assertEqual(item["menu"], "[lsp]")
        self.assertEqual(item["user_data"], entry.id)

    def test_2(self) -> None:
        nvim = MagicMock()
        pum = NvimPum(nvim)

        pum.select(2, insert=True)
        nvim.api.select_popupmenu_item.assert_called_with(2, True, False, {})
        pum.abort()
        nvim.api.select_popupmenu_item.assert_called_with(-1, True, True, {})

    def test_3(self) -> None:
        nvim = MagicMock()
        pum = NvimPum(nvim)

        nvim.funcs.complete_info.return_value = {"selected": 1}
        self.assertEqual(pum.selected(), 1)

        nvim.funcs.pum_getpos.return_value = {}
        self.assertIsNone(pum.info())
        nvim.funcs.pum_getpos.return_value = {
            "row": 1,
            "col": 2,
            "width": 3,
            "height": 4,
            "size": 9,
            "scrollbar": True,
        }
        self.assertEqual(
            pum.info(), EntriesInfo(row=1, col=2, width=3, height=4, scrollbar=True)
        )

        nvim.funcs.pumvisible.return_value = 0
        self.assertTrue(pum.ready())


class Docs(TestCase):
    def test_1(self) -> None:
        nvim = MagicMock()
        nvim.options = {"columns": 120, "lines": 40}
        docs = NvimDocs(nvim, config=load_settings().documentation)

        docs.open(Entry("a", doc=Doc(text="one\ntwo", syntax="")), _INFO)
        nvim.api.buf_set_lines.assert_called_once()
        _, _, opts = nvim.api.open_win.call_args.args
        self.assertEqual(opts["relative"], "editor")
        self.assertEqual(opts["height"], 2)

        nvim.api.win_is_valid.return_value = True
        docs.close()
        docs.close()
        nvim.api.win_close.assert_called_once()

    def test_2(self) -> None:
        nvim = MagicMock()
        docs = NvimDocs(nvim, config=load_settings().documentation)

        docs.open(Entry("a", doc=Doc(text="one", syntax="")), None)
        _, _, opts = nvim.api.open_win.call_args.args
        self.assertEqual(opts["relative"], "cursor")

        docs.scroll(3)
        nvim.funcs.win_execute.assert_called_once()

    def test_3(self) -> None:
        nvim = MagicMock()
        docs = NvimDocs(nvim, config=load_settings().documentation)
        docs.open(Entry("a"), None)
        nvim.api.open_win.assert_not_called()
        docs.scroll(3)
        nvim.funcs.win_execute.assert_not_called()


class Ghost(TestCase):
    def test_1(self) -> None:
        nvim = MagicMock()
        nvim.current.window.cursor = (3, 6)
        nvim.current.line = "x = fo"
        ghost = NvimGhostText(nvim, config=load_settings().menu.ghost_text)

        ghost.show(Entry("foobar", offset=4))
        args = nvim.api.buf_set_extmark.call_args.args
        _, _, row, col, opts = args
        self.assertEqual((row, col), (2, 6))
        self.assertEqual(opts["virt_text"], [["obar", "Comment"]])

    def test_2(self) -> None:
        nvim = MagicMock()
        nvim.current.window.cursor = (1, 2)
        nvim.current.line = "ba"
        ghost = NvimGhostText(nvim, config=load_settings().menu.ghost_text)

        ghost.show(Entry("foo", offset=0))
        nvim.api.buf_set_extmark.assert_not_called()
        nvim.api.buf_clear_namespace.assert_called()


class Keymap(TestCase):
    def test_1(self) -> None:
        nvim = MagicMock()
        nvim.channel_id = 7
        nvim.current.buffer.number = 3
        keymap = NvimKeymap(nvim)
        seen = []

        keymap.listen("i", "<", seen.append)
        keymap.listen("i", "<", seen.append)
        nvim.exec_lua.assert_called_once()
        _, buf, mode, lhs, chan, event, char = nvim.exec_lua.call_args.args
        self.assertEqual((buf, mode, lhs, char), (3, "i", "<lt>", "<"))
        self.assertEqual((chan, event), (7, KEYMAP_EVENT))

        self.assertEqual(keymap.request("i", ord("<")), "<")
        self.assertEqual(seen, ["<"])
        nvim.feedkeys.assert_not_called()

    def test_2(self) -> None:
        nvim = MagicMock()
        keymap = NvimKeymap(nvim)
        self.assertEqual(keymap.request("i", ord(".")), ".")

        def boom(char: str) -> None:
            raise ValueError(char)

        keymap.listen("i", ".", boom)
        with self.assertLogs("pum", level="ERROR"):
            self.assertEqual(keymap.request("i", ord(".")), ".")

    def test_3(self) -> None:
        nvim = MagicMock()
        nvim.current.buffer.number = 3
        keymap = NvimKeymap(nvim)
        seen = []

        keymap.listen("i", ".", seen.append)
        keymap.listen("i", "|", seen.append)
        keymap.clear()
        deleted = {call.args for call in nvim.api.buf_del_keymap.call_args_list}
        self.assertEqual(deleted, {(3, "i", "."), (3, "i", "<Bar>")})

        keymap.request("i", ord("."))
        self.assertEqual(seen, [])
        keymap.clear()
        self.assertEqual(nvim.api.buf_del_keymap.call_count, 2)

        keymap.listen("i", ".", seen.append)
        self.assertEqual(nvim.exec_lua.call_count, 3)


class Attach(TestCase):
    def test_1(self) -> None:
        nvim = MagicMock()
        nvim.vars = {"pum_settings": {"documentation": {"delay": 0.1}}}
        client = attach(nvim, menu=MagicMock(), level="WARNING")
        assert client
        self.assertIsInstance(client, Client)
        self.assertEqual(client.settings.documentation.delay, 0.1)

        self.assertIsNone(on_request(client, "other", ()))
        seen = []
        client.keymap.listen("i", ".", seen.append)
        self.assertEqual(on_request(client, KEYMAP_EVENT, ("i", ord("."))), ".")
        self.assertEqual(seen, ["."])

    def test_2(self) -> None:
        nvim = MagicMock()
        nvim.vars = {"pum_settings": {"documentation": {"delay": -1}}}
        self.assertIsNone(attach(nvim, menu=MagicMock(), level="WARNING"))
        nvim.err_write.assert_called_once()
