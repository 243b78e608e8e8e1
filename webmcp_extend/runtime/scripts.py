"""In-page JavaScript used by generated tools.

Function expressions for `page.evaluate` / `element.evaluate`. The element
helpers receive the element as their first argument.
"""

# Returns true when the dotted path (with or without a leading "window.") resolves to a function
RESOLVE_FUNCTION_SCRIPT = """
(path) => {
	let target = window;
	for (const part of path.replace(/^window\\./, '').split('.')) {
		if (target === undefined || target === null) return false;
		target = target[part];
	}
	return typeof target === 'function';
}
"""

# Calls the function at `path` with `args`, bound to its owning object
CALL_FUNCTION_SCRIPT = """
async ({ path, args }) => {
	const parts = path.replace(/^window\\./, '').split('.');
	let owner = window;
	for (const part of parts.slice(0, -1)) {
		owner = owner[part];
	}
	const fn = owner[parts[parts.length - 1]];
	return await fn.apply(owner, args);
}
"""

FILL_SCRIPT = """
(el, value) => {
	el.value = value === null || value === undefined ? '' : String(value);
	el.dispatchEvent(new Event('input', { bubbles: true }));
	el.dispatchEvent(new Event('change', { bubbles: true }));
}
"""

SELECT_SCRIPT = """
(el, value) => {
	el.value = value === null || value === undefined ? '' : String(value);
	el.dispatchEvent(new Event('change', { bubbles: true }));
}
"""

CHECK_SCRIPT = """
(el) => {
	el.checked = true;
	el.dispatchEvent(new Event('change', { bubbles: true }));
}
"""

SUBMIT_SCRIPT = """
(el) => {
	const form = el.tagName === 'FORM' ? el : el.form || el.closest('form');
	if (!form) throw new Error('No form to submit');
	if (typeof form.requestSubmit === 'function') {
		form.requestSubmit();
	} else {
		form.submit();
	}
}
"""

READ_SCRIPT = """
(el, attribute) => {
	if (attribute === 'textContent' || attribute === 'innerHTML' || attribute === 'outerHTML' || attribute === 'value') {
		return el[attribute];
	}
	return el.getAttribute(attribute);
}
"""
