from helpers import build_model, identifiers


def test_reference_resolves_to_outer_declaration():
    root, source, model = build_model("const a = 1;\nfunction f() { return a; }\n")
    declaration, reference = identifiers(root, source, "a")

    assert model.declared_symbol(declaration) is not None
    assert model.resolve(reference) == model.declared_symbol(declaration)


def test_parameter_shadows_outer_binding():
    code = "const step = {};\nfunction f(step) { return step; }\n"
    root, source, model = build_model(code, "workflow.js")
    outer, parameter, reference = identifiers(root, source, "step")

    assert model.resolve(reference) == model.declared_symbol(parameter)
    assert model.resolve(reference) != model.declared_symbol(outer)


def test_var_is_hoisted_to_function_scope():
    code = "function f(x) {\n  if (x) { var v = 1; }\n  return v;\n}\n"
    root, source, model = build_model(code, "workflow.js")
    declaration, reference = identifiers(root, source, "v")

    assert model.resolve(reference) == model.declared_symbol(declaration)


def test_let_does_not_escape_its_block():
    root, source, model = build_model("{ let b = 1; }\nb;\n", "workflow.js")
    _declaration, reference = identifiers(root, source, "b")

    assert model.resolve(reference) is None


def test_destructured_parameters_are_declared():
    code = "function f({ a: x, b: [c] }, ...rest) { return [x, c, rest]; }\n"
    root, source, model = build_model(code, "workflow.js")

    for name in ("x", "c", "rest"):
        declaration, reference = identifiers(root, source, name)
        assert model.resolve(reference) == model.declared_symbol(declaration)


def test_catch_parameter_and_imports_resolve():
    code = (
        'import { WorkflowEntrypoint as Base } from "cloudflare:workers";\n'
        "try { run(); } catch (err) { report(err, Base); }\n"
    )
    root, source, model = build_model(code)

    err_declaration, err_reference = identifiers(root, source, "err")
    assert model.resolve(err_reference) == model.declared_symbol(err_declaration)

    base_import, base_reference = identifiers(root, source, "Base")
    assert model.resolve(base_reference) == model.declared_symbol(base_import)


def test_unknown_identifier_is_unresolved():
    root, source, model = build_model("missing.do();\n", "workflow.js")
    (reference,) = identifiers(root, source, "missing")

    assert model.resolve(reference) is None
