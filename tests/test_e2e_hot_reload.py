"""End-to-end tests for hot reloading a project of scripts.

These drive a Reloader over real files on disk the way a long-running
host does: load everything, edit files between passes, and check that
the shared symbol space always reflects the last successful load.
"""

import pytest

from hotload.apps import ScriptApp


class TestReloadLifecycle:
    """A file going through load, failed edit, fix and clear."""

    def test_load_fail_retry_clear(self, project):
        """Walk one file through every state of the reload lifecycle."""
        a = project.write("a.py", "class A:\n    pass\n")
        b = project.write("b.py", "class B:\n    pass\n")
        reloader = project.reloader()

        # First pass: the fresh file is loaded and its baseline recorded
        report = reloader.reload()
        first_mtime = a.stat().st_mtime
        assert a in report.loaded
        assert reloader.tracked_files()[a] == first_mtime
        assert reloader.records()[a].symbols == {"A"}

        # A newer mtime with a syntax error: the pass fails, A is gone,
        # and the baseline is left alone so the next pass retries
        project.write("a.py", "class A(:\n")
        with pytest.raises(SyntaxError):
            reloader.reload()
        assert "A" not in reloader.space
        assert reloader.tracked_files()[a] == first_mtime
        assert reloader.changed()

        # Fixing the file makes the next pass load it again
        project.write("a.py", "class A:\n    FIXED = True\n")
        report = reloader.reload()
        assert report.loaded == [a]
        assert reloader.space["A"].FIXED is True
        assert "B" in reloader.space

        # clear forgets baselines, symbols and records
        reloader.clear()
        assert reloader.tracked_files() == {}
        assert reloader.records() == {}
        assert "A" not in reloader.space
        assert "B" not in reloader.space
        assert b not in reloader.loader.loaded()

    def test_removed_definitions_disappear_on_reload(self, project):
        """A symbol deleted from the source is gone after the next pass."""
        project.write("shapes.py", "class Circle: pass\nclass Square: pass\n")
        reloader = project.reloader()
        reloader.reload()

        project.write("shapes.py", "class Circle: pass\n")
        reloader.reload()

        assert "Circle" in reloader.space
        assert "Square" not in reloader.space

    def test_nested_classes_follow_their_file(self, project):
        """Nested classes are tracked and replaced along with their owner."""
        path = project.write(
            "models.py",
            "class Model:\n    class Meta:\n        table = 'old'\n",
        )
        reloader = project.reloader()
        reloader.reload()
        assert reloader.records()[path].symbols == {"Model", "Model.Meta"}

        project.write("models.py", "class Model:\n    class Meta:\n        table = 'new'\n")
        reloader.reload()

        assert reloader.space["Model"].Meta.table == "new"

    def test_required_file_is_reloaded_with_its_requirer(self, project):
        """Reloading a file first reloads what it required last time."""
        child = project.write("app.py", "require('base')\nclass Child(Base): pass\n")
        base = project.write("base.py", "class Base:\n    GREETING = 'hello'\n")
        reloader = project.reloader()
        reloader.reload()
        assert reloader.records()[child].features == {base}

        project.touch(child)
        reloader.reload()

        assert issubclass(reloader.space["Child"], reloader.space["Base"])
        assert reloader.records()[child].symbols == {"Child"}
        assert reloader.records()[base].symbols == {"Base"}

    def test_excluded_symbols_survive_reloads(self, project):
        """Symbols on the exclusion list are never removed by a reload."""
        project.write("registry.py", "class Registry:\n    VERSION = 1\n")
        reloader = project.reloader(exclude_symbols=["Registry"])
        reloader.reload()
        original = reloader.space["Registry"]

        project.write("registry.py", "")
        reloader.reload()

        assert reloader.space["Registry"] is original


class TestApplicationReload:
    """Mounted applications reloading alongside plain files."""

    def test_edit_model_reloads_application(self, project):
        """An edited model is visible through the application's entry script."""
        project.write("shop/models/product.py", "class Product:\n    PRICE = 10\n")
        entry = project.write(
            "shop/app.py",
            "class Shop:\n    def price(self):\n        return Product.PRICE\n",
        )
        reloader = project.reloader()
        app = reloader.mount(ScriptApp("shop", entry, reloader, ["models/*.py"]))
        reloader.reload()
        assert reloader.space["Shop"]().price() == 10

        project.write("shop/models/product.py", "class Product:\n    PRICE = 12\n")
        report = reloader.reload()

        assert report.reloaded_apps == ["shop"]
        assert reloader.space["Shop"]().price() == 12
        assert app.reload_count == 2
        assert not reloader.changed()
