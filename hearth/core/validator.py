"""Pre-flight checks for templates: referenced variables and unit structure."""
import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Sequence

from hearth.core.renderer import ServiceTemplate, malformed_placeholders, placeholders

# Sections every Quadlet unit of a given type must carry
REQUIRED_SECTIONS = {
    "container": ["Unit", "Container", "Service", "Install"],
    "pod": ["Pod"],
    "network": ["Network"],
    "volume": ["Volume"],
    "kube": ["Kube"],
}

SECTION_HEADER = re.compile(r'^\[([^\]]+)\]\s*$', re.MULTILINE)


@dataclass
class ValidationReport:
    """Problems found across all templates."""

    required: List[str] = field(default_factory=list)
    missing: Dict[str, List[str]] = field(default_factory=dict)
    structure: Dict[str, List[str]] = field(default_factory=dict)
    malformed: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.missing and not self.structure and not self.malformed

    def errors(self) -> List[str]:
        errors = []
        for name, templates in sorted(self.missing.items()):
            errors.append(f"{name} is used by {', '.join(templates)} but not defined")
        for template, sections in sorted(self.structure.items()):
            errors.append(f"{template}: missing section(s) {', '.join(f'[{s}]' for s in sections)}")
        for template, tokens in sorted(self.malformed.items()):
            errors.append(f"{template}: unsupported placeholder(s) {', '.join(tokens)}")
        return errors


class TemplateValidator:
    """Checks a template set against the bindings before deploying."""

    def validate(self, templates: Sequence[ServiceTemplate], bindings: Mapping[str, str]) -> ValidationReport:
        report = ValidationReport(required=self.required_variables(templates))

        for template in templates:
            for name in placeholders(template.text):
                if name not in bindings:
                    report.missing.setdefault(name, []).append(template.name)

            malformed = malformed_placeholders(template.text)
            if malformed:
                report.malformed[template.name] = malformed

            missing_sections = self.missing_sections(template)
            if missing_sections:
                report.structure[template.name] = missing_sections

        return report

    def required_variables(self, templates: Sequence[ServiceTemplate]) -> List[str]:
        """Every placeholder name used by any template, sorted."""
        names = set()
        for template in templates:
            names.update(placeholders(template.text))
        return sorted(names)

    def missing_sections(self, template: ServiceTemplate) -> List[str]:
        expected = REQUIRED_SECTIONS.get(template.extension, [])
        present = set(SECTION_HEADER.findall(template.text))
        return [section for section in expected if section not in present]
