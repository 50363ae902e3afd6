import marimo

__generated_with = "0.13.10"
app = marimo.App(width="full", app_title="Urban Walker")


# ---------------------------------------------------------------------------
# Bootstrap: settings, cache, remote store, background sync
# ---------------------------------------------------------------------------


@app.cell
def _setup():
    import logging
    import sys
    from pathlib import Path

    _ROOT = Path(__file__).parent.parent
    _SRC = _ROOT / "src"
    _CONFIG = _ROOT / "walker.toml"

    if str(_SRC) not in sys.path:
        sys.path.insert(0, str(_SRC))

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    from walker.config import load_settings
    from walker.reconciler import Reconciler
    from walker.record import SNEAKERS
    from walker.scheduler import default_scheduler
    from walker.session import restore_session

    _settings = load_settings(_CONFIG if _CONFIG.exists() else None)
    reconciler = Reconciler.from_settings(_settings)
    restore_session(reconciler.remote, reconciler.cache)

    _scheduler = default_scheduler(reconciler, interval=_settings.sync_interval)
    _scheduler.start()

    return (reconciler, SNEAKERS)


@app.cell
def _state(mo):
    refresh = mo.state(0)
    return (refresh,)


# ---------------------------------------------------------------------------
# Sync controls
# ---------------------------------------------------------------------------


@app.cell
def _controls(mo, reconciler, SNEAKERS, refresh):
    refresh[0]()
    set_refresh = refresh[1]

    async def _sync_now(_):
        await reconciler.trigger_sync(SNEAKERS)
        set_refresh(lambda n: n + 1)

    sync_button = mo.ui.button(label="Sync now", on_click=_sync_now, kind="neutral")
    summary = mo.ui.table(reconciler.cache.pending_summary(), selection=None)
    return summary, sync_button


# ---------------------------------------------------------------------------
# Inventory grid
# ---------------------------------------------------------------------------


@app.cell
async def _inventory(mo, reconciler, SNEAKERS, refresh):
    refresh[0]()  # re-run after a manual sync
    listing = await reconciler.get_merged_list(SNEAKERS)

    def _card(row):
        badge = " `Pending`" if row.pending else ""
        data = row.data
        return mo.md(
            f"### {data.get('name', '')}{badge}\n\n"
            f"{data.get('desc', '')}\n\n"
            f"Price: R{data.get('price', 0)} · In stock: {data.get('qty', 'N/A')}"
        )

    inventory = (
        mo.hstack([_card(r) for r in listing], wrap=True, gap="16px")
        if listing
        else mo.callout(mo.md("No products available yet."), kind="neutral")
    )
    return (inventory,)


@app.cell
def _render(mo, inventory, summary, sync_button):
    mo.vstack([mo.hstack([mo.md("## Inventory"), sync_button]), summary, inventory], gap="8px")
    return


@app.cell
def _imports():
    import marimo as mo

    return (mo,)


if __name__ == "__main__":
    app.run()
