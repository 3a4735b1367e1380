from cashmere.classifier import (
    classify_step_symbols,
    collect_import_aliases,
    find_inferred_step_symbols,
    find_typed_step_symbols,
)

from helpers import build_model


def _names(symbols):
    return sorted(symbol.name for symbol in symbols)


def test_parameter_typed_workflow_step_is_classified():
    code = (
        "export class MyWorkflow {\n"
        "  async run(event: unknown, step: WorkflowStep) {}\n"
        "}\n"
        "const helper = async (s: WorkflowStep, other: number) => {};\n"
    )
    root, source, model = build_model(code)

    assert _names(find_typed_step_symbols(root, source, model)) == ["s", "step"]


def test_other_type_names_are_not_classified():
    code = "async function wf(step: Step, task: WorkflowStepLike) {}\n"
    root, source, model = build_model(code)

    assert find_typed_step_symbols(root, source, model) == frozenset()


def test_import_alias_map_tracks_renamed_imports():
    code = (
        'import { WorkflowEntrypoint as Base, env } from "cloudflare:workers";\n'
        'import { WorkflowEntrypoint as Other } from "some-other-module";\n'
    )
    root, source, model = build_model(code, "workflow.js")

    aliases = collect_import_aliases(root, source, model)

    assert aliases.local_to_imported == {"Base": "WorkflowEntrypoint", "env": "env"}
    assert aliases.is_alias_for("Base", "WorkflowEntrypoint")
    assert aliases.symbol_for("WorkflowEntrypoint").name == "Base"


def test_run_parameter_inferred_from_entrypoint_subclass():
    code = (
        'import { WorkflowEntrypoint as Base } from "cloudflare:workers";\n'
        "export class MyWorkflow extends Base {\n"
        "  async run(event, step) {}\n"
        "}\n"
    )
    root, source, model = build_model(code, "workflow.js")

    assert _names(find_inferred_step_symbols(root, source, model)) == ["step"]


def test_inference_requires_the_workflows_import():
    code = (
        "class WorkflowEntrypoint {}\n"
        "export class MyWorkflow extends WorkflowEntrypoint {\n"
        "  async run(event, step) {}\n"
        "}\n"
    )
    root, source, model = build_model(code, "workflow.js")

    assert find_inferred_step_symbols(root, source, model) == frozenset()


def test_destructured_or_defaulted_run_parameter_is_skipped():
    code = (
        'import { WorkflowEntrypoint } from "cloudflare:workers";\n'
        "class A extends WorkflowEntrypoint { async run(event, { step }) {} }\n"
        "class B extends WorkflowEntrypoint { async run(event, step = null) {} }\n"
    )
    root, source, model = build_model(code, "workflow.js")

    assert find_inferred_step_symbols(root, source, model) == frozenset()


def test_typescript_entrypoint_subclass_is_inferred():
    code = (
        'import { WorkflowEntrypoint } from "cloudflare:workers";\n'
        "export class MyWorkflow extends WorkflowEntrypoint<Env, Params> {\n"
        "  async run(event: WorkflowEvent<Params>, step: any) {}\n"
        "}\n"
    )
    root, source, model = build_model(code)

    step_symbols = classify_step_symbols(root, source, model)

    assert _names(step_symbols.inferred) == ["step"]
    assert step_symbols.typed == frozenset()
    assert len(step_symbols) == 1
