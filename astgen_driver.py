#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from astgen_backend import Backend
from astgen_context import GenerationContext, TargetPaths
from astgen_errors import PostProcessError, SinkError
from astgen_logger import log_debug, log_info, log_stage
from astgen_schema import Schema, validate_schema


@dataclass
class GenerationResult:
    units: Dict[str, str] = field(default_factory=dict)   # module -> pre-format source
    written: List[Path] = field(default_factory=list)      # final paths, in category order


class GeneratorDriver:
    """
    One generation run:
      - validate the schema (nothing is written when it is malformed)
      - emit every category in memory
      - write each unit next to its destination under a temporary name
      - run the formatter on each temporary file
      - move all units into place only when every step succeeded

    The run is all-or-nothing: on any failure the temporary files are removed
    and previously generated files are left untouched.
    """

    def __init__(self, context: GenerationContext | None = None):
        self.context = context or GenerationContext.default()

    # --- Public API ---

    def generate(self, schema: Schema, paths: Optional[TargetPaths] = None) -> Dict[str, str]:
        """Validate and emit without touching the filesystem."""
        log_stage(self.context, "Validating schema")
        validate_schema(schema)
        backend = Backend(schema=schema, paths=paths or TargetPaths(), context=self.context)
        return backend.generate_all()

    def run(self, schema: Schema, out_dir: str | Path, paths: Optional[TargetPaths] = None) -> GenerationResult:
        units = self.generate(schema, paths)
        out = Path(out_dir)
        result = GenerationResult(units=units)

        pending: Dict[Path, Path] = {}
        try:
            try:
                out.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise SinkError(f"[SNK-0010] cannot create output directory {out}: {e}") from e

            for module, text in units.items():
                final = out / f"{module}.rs"
                tmp = out / f".{module}.astgen-tmp.rs"
                log_stage(self.context, "Writing", str(final))
                try:
                    tmp.write_text(text, encoding="utf-8")
                except OSError as e:
                    raise SinkError(f"[SNK-0010] cannot write {final}: {e}") from e
                pending[tmp] = final

            if self.context.run_formatter:
                for tmp, final in pending.items():
                    self.format_file(tmp, display_name=final)

            for tmp, final in pending.items():
                try:
                    os.replace(tmp, final)
                except OSError as e:
                    raise SinkError(f"[SNK-0020] cannot move {tmp} to {final}: {e}") from e
                result.written.append(final)
            pending.clear()
        finally:
            for tmp in pending:
                if tmp.exists():
                    tmp.unlink()

        log_info(self.context, f"Generated {len(result.written)} file(s) in {out}")
        return result

    def format_file(self, path: Path, display_name: Path | None = None) -> None:
        """Run the configured formatter on `path`; any failure is fatal."""
        name = display_name or path
        if not self.context.formatter:
            raise PostProcessError("[FMT-0010] no formatter command configured")
        cmd = list(self.context.formatter) + [str(path)]
        log_stage(self.context, "Formatting", str(name))
        log_debug(self.context, f"Running: {' '.join(cmd)}")
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.context.formatter_timeout,
            )
        except FileNotFoundError as e:
            raise PostProcessError(
                f"[FMT-0010] formatter '{cmd[0]}' not found", diagnostic=str(e)
            ) from e
        except OSError as e:
            raise PostProcessError(
                f"[FMT-0011] cannot start formatter '{cmd[0]}'", diagnostic=str(e)
            ) from e
        except subprocess.TimeoutExpired as e:
            raise PostProcessError(
                f"[FMT-0030] formatter timed out after {self.context.formatter_timeout}s on {name}"
            ) from e

        if proc.returncode != 0:
            diagnostic = "\n".join(s for s in (proc.stderr, proc.stdout) if s)
            raise PostProcessError(
                f"[FMT-0020] formatter failed on {name} (exit status {proc.returncode})",
                diagnostic=diagnostic,
            )
