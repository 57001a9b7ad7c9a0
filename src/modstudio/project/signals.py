"""
Qt signal hub of the document engine.
"""

from PySide6.QtCore import QObject, Signal


class DocumentSignals(QObject):
    """Notifications emitted by ``DocumentEngine`` and ``PersistencePipeline``.

    Signals:
        document_replaced(object): A new or loaded document replaced the old one
        document_changed(): Any mutation of the current document
        unsaved_changed(bool): The unsaved-changes flag flipped
        selection_changed(str, object): Active artifact of a collection changed
            (kind value, artifact id or None)
        save_started(str): A write to the given path began
        save_finished(str, int): A write succeeded (path, bytes written)
        save_failed(str, str): A write failed (path, error message)
        load_failed(str, str): Opening a file failed (path, error message)
    """

    document_replaced = Signal(object)
    document_changed = Signal()
    unsaved_changed = Signal(bool)
    selection_changed = Signal(str, object)
    save_started = Signal(str)
    save_finished = Signal(str, int)
    save_failed = Signal(str, str)
    load_failed = Signal(str, str)
