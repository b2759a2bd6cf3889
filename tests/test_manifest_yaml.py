"""
YAML manifest tests

Tests loading mapping groups and substitution declarations from a
manifest file, and the errors raised for malformed manifests.
"""

import textwrap

import pytest

from steerdown.lib.manifest import ManifestError, group_expand, manifest_load, mapping_fromDict
from steerdown.models.manifest import BuildTarget, FileMapping


MANIFEST = textwrap.dedent("""\
    groups:
      steering:
        base_dir: src
        output_dir: steering
        mappings:
          - src: core/aliases.md
            dest: aliases.md
          - src: "core/protocols/*.md"
            dest: "protocols/{name}.md"
          - src: debug.md
            dest: debug.md
            targets: [dev]
      power:
        base_dir: powers/kiro-protocols
        mappings:
          - src: POWER.md
            dest: POWER.md
    substitutions:
      "{{{MODE_COMMANDS}}}":
        text: "/modes {name}"
""")


def manifest_write(tmp_path, text):
    path = tmp_path / "steerdown.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestManifestLoad:
    """Test manifest_load on well-formed files"""

    def test_groups(self, tmp_path):
        """Groups keep file order, base and output directories"""
        manifest = manifest_load(manifest_write(tmp_path, MANIFEST))

        assert [g.name for g in manifest.groups] == ["steering", "power"]
        steering = manifest.group_get("steering")
        assert steering.base_dir == "src"
        assert steering.output_dir == "steering"
        assert len(steering.mappings) == 3

    def test_output_dir_defaults_to_name(self, tmp_path):
        """A group without output_dir writes under its own name"""
        manifest = manifest_load(manifest_write(tmp_path, MANIFEST))
        assert manifest.group_get("power").output_dir == "power"

    def test_targets_parsed(self, tmp_path):
        """targets lists become BuildTarget sets"""
        manifest = manifest_load(manifest_write(tmp_path, MANIFEST))
        debug = manifest.group_get("steering").mappings[2]

        assert debug == FileMapping("debug.md", "debug.md", frozenset({BuildTarget.DEV}))
        assert manifest.group_get("steering").mappings[0].targets is None

    def test_substitutions_kept_raw(self, tmp_path):
        """Substitution declarations are returned as parsed"""
        manifest = manifest_load(manifest_write(tmp_path, MANIFEST))
        assert manifest.substitutions == {"{{{MODE_COMMANDS}}}": {"text": "/modes {name}"}}

    def test_empty_file(self, tmp_path):
        """An empty manifest has no groups"""
        manifest = manifest_load(manifest_write(tmp_path, ""))
        assert manifest.groups == []
        assert manifest.group_get("steering") is None

    def test_loaded_group_expands(self, tmp_path):
        """Loaded groups expand relative to the project root"""
        protocols = tmp_path / "src" / "core" / "protocols"
        protocols.mkdir(parents=True)
        (protocols / "agent-activation.md").write_text("x", encoding="utf-8")
        manifest = manifest_load(manifest_write(tmp_path, MANIFEST))

        expanded = group_expand(manifest.group_get("steering"), tmp_path, BuildTarget.NPM)

        assert [m.dest for m in expanded] == ["aliases.md", "protocols/agent-activation.md"]


class TestManifestErrors:
    """Test ManifestError reporting"""

    def test_missing_file(self, tmp_path):
        with pytest.raises(ManifestError):
            manifest_load(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ManifestError):
            manifest_load(manifest_write(tmp_path, "groups: [unclosed\n"))

    def test_top_level_list(self, tmp_path):
        with pytest.raises(ManifestError):
            manifest_load(manifest_write(tmp_path, "- a\n- b\n"))

    def test_unknown_top_level_key(self, tmp_path):
        with pytest.raises(ManifestError, match="unknown key"):
            manifest_load(manifest_write(tmp_path, "groupz: {}\n"))

    def test_unknown_target(self, tmp_path):
        """Targets outside npm/dev/cli/power are rejected"""
        text = textwrap.dedent("""\
            groups:
              g:
                mappings:
                  - src: a.md
                    dest: a.md
                    targets: [desktop]
        """)
        with pytest.raises(ManifestError, match="desktop"):
            manifest_load(manifest_write(tmp_path, text))

    def test_mapping_requires_src_and_dest(self):
        with pytest.raises(ManifestError):
            mapping_fromDict({"src": "a.md"})
        with pytest.raises(ManifestError):
            mapping_fromDict({"dest": "a.md"})

    def test_mapping_unknown_key(self):
        with pytest.raises(ManifestError, match="unknown key"):
            mapping_fromDict({"src": "a.md", "dest": "a.md", "target": "dev"})

    def test_single_target_string(self):
        """A single target may be written without a list"""
        mapping = mapping_fromDict({"src": "a.md", "dest": "a.md", "targets": "power"})
        assert mapping.targets == frozenset({BuildTarget.POWER})
