"""In-page JavaScript for the script-surface scans.

Each constant is a function expression passed to `page.evaluate`. The scans
only read page state, and every property access is wrapped in its own
try/catch so one hostile getter cannot abort a scan.
"""

GLOBAL_DENY_LIST = (
	'window',
	'self',
	'document',
	'location',
	'navigator',
	'history',
	'screen',
	'performance',
	'localStorage',
	'sessionStorage',
	'console',
	'alert',
	'confirm',
	'prompt',
	'fetch',
	'XMLHttpRequest',
	'setTimeout',
	'setInterval',
	'clearTimeout',
	'clearInterval',
	'requestAnimationFrame',
	'cancelAnimationFrame',
	'addEventListener',
	'removeEventListener',
	'dispatchEvent',
	'postMessage',
	'close',
	'open',
	'print',
	'stop',
	'focus',
	'blur',
	'scroll',
	'scrollTo',
	'scrollBy',
	'getComputedStyle',
	'getSelection',
	'matchMedia',
	'atob',
	'btoa',
	'crypto',
	'indexedDB',
	'caches',
	'origin',
	'isSecureContext',
	'crossOriginIsolated',
	'frames',
	'parent',
	'top',
	'opener',
	'name',
	'length',
	'closed',
	'clientInformation',
	'customElements',
	'devicePixelRatio',
	'external',
	'innerHeight',
	'innerWidth',
	'outerHeight',
	'outerWidth',
	'pageXOffset',
	'pageYOffset',
	'screenLeft',
	'screenTop',
	'screenX',
	'screenY',
	'scrollX',
	'scrollY',
	'visualViewport',
	'styleMedia',
	'chrome',
	'speechSynthesis',
)

EVENT_HANDLER_ATTRIBUTES = ('onclick', 'onsubmit', 'onchange', 'oninput', 'onfocus', 'onblur', 'onkeydown', 'onkeyup')

EXPOSED_API_NAMES = ('api', 'API', 'sdk', 'SDK', 'client', 'Client', 'service', 'Service', 'app', 'App', 'store', 'Store')

MAX_GLOBALS = 50
MAX_METHODS = 20
MAX_EVENT_HANDLERS = 30
MAX_SOURCE_PREFIX = 200
MAX_HANDLER_CODE = 200
MAX_ELEMENT_TEXT = 100

# Receives {denyList, maxGlobals, maxMethods, maxSource}
EXTRACT_GLOBALS_SCRIPT = """
(opts) => {
	const deny = new Set(opts.denyList);
	const results = [];
	const toSource = (fn) => Function.prototype.toString.call(fn);
	// engine and DOM built-ins print as `function X() { [native code] }`
	const isNative = (fn) => {
		try {
			return /\\{\\s*\\[native code\\]\\s*\\}\\s*$/.test(toSource(fn));
		} catch (e) {
			return true;
		}
	};
	const paramsOf = (fn) => {
		try {
			const src = toSource(fn).slice(0, opts.maxSource);
			const match = src.match(/\\(([^)]*)\\)/);
			if (!match) return undefined;
			const params = match[1].split(',').map((p) => p.trim()).filter(Boolean);
			return params.length ? params : undefined;
		} catch (e) {
			return undefined;
		}
	};

	let props = [];
	try {
		props = Object.getOwnPropertyNames(window);
	} catch (e) {
		return results;
	}

	for (const prop of props) {
		if (results.length >= opts.maxGlobals) break;
		if (deny.has(prop)) continue;
		if (prop.startsWith('on') || prop.startsWith('webkit') || prop.startsWith('__zone')) continue;
		if (prop === 'zone' || prop === 'Zone') continue;
		try {
			const val = window[prop];
			if (val === undefined || val === null) continue;
			if (typeof val === 'function') {
				if (isNative(val)) continue;
				results.push({ kind: 'function', path: 'window.' + prop, params: paramsOf(val) });
			} else if (typeof val === 'object' && !Array.isArray(val)) {
				const methods = [];
				let pageDefined = false;
				let names = [];
				try {
					names = Object.getOwnPropertyNames(val);
				} catch (e) {
					names = [];
				}
				for (const m of names) {
					try {
						const member = val[m];
						if (typeof member !== 'function') continue;
						if (!isNative(member)) pageDefined = true;
						if (methods.length < opts.maxMethods) methods.push(m);
					} catch (e) {}
				}
				// Math, JSON, Intl and friends only carry native members
				if (pageDefined && methods.length > 0) {
					results.push({ kind: 'object', path: 'window.' + prop, methods });
				}
			}
		} catch (e) {}
	}
	return results;
}
"""

EXTRACT_DATA_LAYERS_SCRIPT = """
() => {
	const layers = [];
	const read = (name) => {
		try {
			return window[name];
		} catch (e) {
			return undefined;
		}
	};
	const keysOf = (obj) => {
		try {
			return Object.keys(obj);
		} catch (e) {
			return [];
		}
	};

	const dataLayer = read('dataLayer');
	if (Array.isArray(dataLayer)) {
		let keys = [];
		try {
			keys = dataLayer.length > 0 && dataLayer[0] && typeof dataLayer[0] === 'object' ? Object.keys(dataLayer[0]) : [];
		} catch (e) {}
		layers.push({ path: 'window.dataLayer', framework: 'gtm', keys, shape: 'array' });
	}

	const objectLayers = [
		['__NEXT_DATA__', 'next'],
		['__NUXT__', 'nuxt'],
		['__REDUX_STATE__', 'redux'],
	];
	for (const [name, framework] of objectLayers) {
		const val = read(name);
		if (val && typeof val === 'object') {
			layers.push({ path: 'window.' + name, framework, keys: keysOf(val), shape: 'object' });
		}
	}

	const store = read('__REDUX_STORE__');
	try {
		if (store && typeof store === 'object' && typeof store.getState === 'function') {
			layers.push({
				path: 'window.__REDUX_STORE__',
				framework: 'redux',
				keys: ['getState', 'dispatch', 'subscribe'],
				shape: 'object',
			});
		}
	} catch (e) {}

	return layers;
}
"""

# Receives {attributes, maxEntries, maxCode, maxText}
EXTRACT_EVENT_HANDLERS_SCRIPT = """
(opts) => {
	const handlers = [];
	for (const attr of opts.attributes) {
		let elements = [];
		try {
			elements = document.querySelectorAll('[' + attr + ']');
		} catch (e) {
			continue;
		}
		for (const el of elements) {
			if (handlers.length >= opts.maxEntries) return handlers;
			try {
				const code = el.getAttribute(attr);
				if (!code) continue;
				const tag = el.tagName.toLowerCase();
				const name = el.getAttribute('name');
				let selector;
				if (el.id) {
					selector = '#' + el.id;
				} else if (name) {
					selector = tag + '[name="' + name + '"]';
				} else {
					selector = tag + '[' + attr + ']';
				}
				const text = (el.textContent || '').trim().slice(0, opts.maxText);
				handlers.push({
					selector,
					event: attr.slice(2),
					handlerCode: code.slice(0, opts.maxCode),
					elementText: text || undefined,
				});
			} catch (e) {}
		}
	}
	return handlers;
}
"""

# Receives {names, maxMethods, maxSource}
EXTRACT_EXPOSED_APIS_SCRIPT = """
(opts) => {
	const apis = [];
	const paramsOf = (fn) => {
		try {
			const src = Function.prototype.toString.call(fn).slice(0, opts.maxSource);
			const match = src.match(/\\(([^)]*)\\)/);
			if (!match) return undefined;
			const params = match[1].split(',').map((p) => p.trim()).filter(Boolean);
			return params.length ? params : undefined;
		} catch (e) {
			return undefined;
		}
	};

	for (const name of opts.names) {
		try {
			const val = window[name];
			if (!val || typeof val !== 'object') continue;
			const methods = [];
			for (const prop of Object.getOwnPropertyNames(val)) {
				if (methods.length >= opts.maxMethods) break;
				try {
					const member = val[prop];
					if (typeof member === 'function') {
						methods.push({ name: prop, params: paramsOf(member) });
					}
				} catch (e) {}
			}
			if (methods.length > 0) {
				apis.push({ path: 'window.' + name, methods });
			}
		} catch (e) {}
	}
	return apis;
}
"""
