"""Tests for preview handle lifetime."""


class TestPreviewHandleRegistry:
    def test_create_writes_bytes(self, registry):
        handle = registry.create(b"abc", "image/png")
        assert handle.path.read_bytes() == b"abc"
        assert handle in registry
        assert registry.resolve(handle.handle_id) is handle
        assert len(registry) == 1

    def test_release_removes_file(self, registry):
        handle = registry.create(b"abc", "image/png")
        registry.release(handle)
        assert not handle.path.exists()
        assert registry.resolve(handle.handle_id) is None
        assert len(registry) == 0

    def test_release_twice_is_noop(self, registry):
        handle = registry.create(b"abc", "image/png")
        registry.release(handle)
        registry.release(handle)
        registry.release(None)
        assert len(registry) == 0

    def test_release_all(self, registry):
        handles = [registry.create(b"x", "image/gif") for _ in range(3)]
        registry.release_all()
        assert len(registry) == 0
        assert not any(h.path.exists() for h in handles)
