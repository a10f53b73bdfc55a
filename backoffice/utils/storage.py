"""
Utilidad: Almacenamiento de documentos
PDFs de boletos y visas en Google Cloud Storage (o carpeta local uploads/)
"""
import os
import json
import uuid
from google.cloud import storage
from werkzeug.utils import secure_filename

# Carpeta local cuando no hay bucket configurado
UPLOADS_DIR = os.path.join(os.path.dirname(__file__), '..', '..', 'uploads')


def get_storage_client():
    """Obtiene el cliente de Cloud Storage (credenciales como JSON o ruta de archivo)"""
    creds = os.getenv("GOOGLE_APPLICATION_CREDENTIALS", "").strip()

    if not creds:
        print("⚠️ GOOGLE_APPLICATION_CREDENTIALS no está configurado")
        return None

    try:
        if creds.startswith('{'):
            client = storage.Client.from_service_account_info(json.loads(creds))
            print("✅ Cloud Storage inicializado desde JSON string")
            return client

        if os.path.exists(creds):
            client = storage.Client.from_service_account_json(creds)
            print("✅ Cloud Storage inicializado desde archivo")
            return client

        print(f"⚠️ GOOGLE_APPLICATION_CREDENTIALS no es válido (ni JSON ni archivo existente)")
        return None

    except Exception as e:
        print(f"⚠️ Error al inicializar Cloud Storage: {e}")
        import traceback
        traceback.print_exc()
        return None


def _build_path(folder, filename):
    return f"{folder}/{uuid.uuid4().hex}_{secure_filename(filename or 'document.pdf')}"


def save_document(content, filename, folder="documents", content_type="application/pdf"):
    """
    Guarda un documento subido

    Args:
        content: bytes del archivo
        filename: nombre original
        folder: carpeta destino (tickets, visas, ...)

    Returns:
        str: URL relativa servida por /api/documents/<path> o None si falla
    """
    path = _build_path(folder, filename)
    bucket_name = os.getenv("GCS_BUCKET_NAME")

    if bucket_name:
        client = get_storage_client()
        if not client:
            return None
        try:
            blob = client.bucket(bucket_name).blob(path)
            blob.upload_from_string(content, content_type=content_type)
            print(f"✅ Documento subido a Cloud Storage: {path}")
        except Exception as e:
            print(f"❌ Error al subir documento: {e}")
            return None
    else:
        local_path = os.path.join(UPLOADS_DIR, path)
        os.makedirs(os.path.dirname(local_path), exist_ok=True)
        with open(local_path, 'wb') as f:
            f.write(content)
        print(f"✅ Documento guardado localmente: {path}")

    return f"/api/documents/{path}"


def get_document(path):
    """
    Obtiene un documento guardado

    Returns:
        tuple: (content, content_type) o (None, None) si no existe
    """
    bucket_name = os.getenv("GCS_BUCKET_NAME")

    if not bucket_name:
        local_path = os.path.abspath(os.path.join(UPLOADS_DIR, path))
        if not local_path.startswith(os.path.abspath(UPLOADS_DIR)) or not os.path.exists(local_path):
            return None, None
        with open(local_path, 'rb') as f:
            content = f.read()
        content_type = "application/pdf" if path.lower().endswith(".pdf") else "application/octet-stream"
        return content, content_type

    client = get_storage_client()
    if not client:
        return None, None

    try:
        blob = client.bucket(bucket_name).blob(path)
        if not blob.exists():
            return None, None
        return blob.download_as_bytes(), blob.content_type or 'application/octet-stream'
    except Exception as e:
        print(f"❌ Error obteniendo documento: {e}")
        return None, None
