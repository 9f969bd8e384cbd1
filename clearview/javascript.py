import os

import jsbeautifier
from dash import ClientsideFunction

# region Templates

_template = """window.{namespace} = Object.assign({{}}, window.{namespace}, {{
    {content}
}});"""
_ns_template = """{namespace}: {{
        {content}
    }}"""
_func_template = """{name}: {function}"""


# endregion

class Namespace:
    """
    Collection of JavaScript functions that is written to the assets folder, from where Dash serves it to the browser.
    A namespace rooted at "dash_clientside" can be targeted by clientside callbacks.
    """

    def __init__(self, *args):
        self.args = list(args)
        self.f_map = {}

    def add(self, src, name=None):
        name = f"function{len(self.f_map)}" if name is None else name
        self.f_map[name] = src
        return name

    def render(self):
        content = ",\n".join([_func_template.format(name=name, function=self.f_map[name]) for name in self.f_map])
        for ns in reversed(self.args[1:]):
            content = _ns_template.format(namespace=ns, content=content)
        content = _template.format(namespace=self.args[0], content=content)
        return jsbeautifier.beautify(content)

    def dump(self, assets_folder="assets"):
        os.makedirs(assets_folder, exist_ok=True)
        path = os.path.join(assets_folder, "{}.js".format("_".join(self.args)))
        with open(path, 'w') as f:
            f.write(self.render())
        return path

    def clientside_function(self, name):
        if self.args[0] != "dash_clientside":
            raise ValueError(f"Namespace {'.'.join(self.args)} is not visible to clientside callbacks.")
        return ClientsideFunction(".".join(self.args[1:]), name)


# Forwards pointer and touch events to a store as ordered batches. Only one batch is in flight at a time: the next one
# goes out once the slider state store has been updated with the result of the previous one, so every batch is applied
# on top of the state its predecessor produced. Moves queued behind a batch in flight are coalesced to the latest one.
# Move and release listeners exist only while a drag is in progress.
forward_pointer_events = """function(viewportId, pointerStoreId, handleClass) {
    const clientside = window.dash_clientside;
    const bridge = clientside.clearview;
    if (bridge.installed) {
        return clientside.no_update;
    }
    bridge.installed = true;
    const moves = ["mousemove", "touchmove"];
    const queue = [];
    let seq = 0;
    let inFlight = false;
    let timer = null;
    const layoutBox = function() {
        const el = document.getElementById(viewportId);
        if (!el) {
            return null;
        }
        const rect = el.getBoundingClientRect();
        return rect.width > 0 ? {left: rect.left, width: rect.width} : null;
    };
    const describe = function(e, onHandle) {
        const touches = e.touches ? Array.from(e.touches).map(t => ({clientX: t.clientX})) : [];
        const clientX = e.clientX === undefined ? null : e.clientX;
        return {type: e.type, clientX: clientX, touches: touches, onHandle: onHandle, box: layoutBox()};
    };
    const flush = function() {
        if (inFlight || queue.length === 0) {
            return;
        }
        const events = queue.splice(0, queue.length);
        inFlight = true;
        // A batch whose response never arrives must not block the bridge forever.
        timer = setTimeout(bridge.acknowledge, 2000);
        clientside.set_props(pointerStoreId, {data: {seq: events[events.length - 1].seq, events: events}});
    };
    bridge.acknowledge = function() {
        if (timer !== null) {
            clearTimeout(timer);
            timer = null;
        }
        inFlight = false;
        flush();
    };
    const enqueue = function(payload) {
        seq += 1;
        payload.seq = seq;
        const last = queue[queue.length - 1];
        if (last && moves.includes(last.type) && last.type === payload.type) {
            queue[queue.length - 1] = payload;
        } else {
            queue.push(payload);
        }
        flush();
    };
    const move = function(e) {
        enqueue(describe(e, false));
    };
    const release = function(e) {
        detach();
        enqueue(describe(e, false));
    };
    const attach = function() {
        document.addEventListener("mousemove", move);
        document.addEventListener("touchmove", move);
        document.addEventListener("mouseup", release);
        document.addEventListener("touchend", release);
    };
    const detach = function() {
        document.removeEventListener("mousemove", move);
        document.removeEventListener("touchmove", move);
        document.removeEventListener("mouseup", release);
        document.removeEventListener("touchend", release);
    };
    const press = function(e) {
        const onHandle = Boolean(e.target.closest && e.target.closest("." + handleClass));
        if (!onHandle) {
            return;
        }
        e.preventDefault();
        attach();
        enqueue(describe(e, true));
    };
    document.addEventListener("mousedown", press);
    document.addEventListener("touchstart", press, {passive: false});
    return clientside.no_update;
}"""

# Called whenever the slider state store changes, i.e. when the response to the batch in flight has landed.
acknowledge_pointer_events = """function(sliderState) {
    const bridge = window.dash_clientside.clearview;
    if (bridge.acknowledge) {
        bridge.acknowledge();
    }
    return window.dash_clientside.no_update;
}"""

bridge = Namespace("dash_clientside", "clearview")
bridge.add(forward_pointer_events, name="forwardPointerEvents")
bridge.add(acknowledge_pointer_events, name="acknowledgePointerEvents")
