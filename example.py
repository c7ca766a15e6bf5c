"""
Example client for the inspection AI service
"""
import base64
import json
import sys
from pathlib import Path

import requests


def analyze_frame(image_path: str, api_url: str = "http://localhost:8000") -> dict:
    """
    Send an inspection frame for analysis

    Args:
        image_path: Path to the captured frame
        api_url: Service URL

    Returns:
        Analysis result
    """
    image_file = Path(image_path)

    if not image_file.exists():
        raise FileNotFoundError(f"Image not found: {image_path}")

    print(f"📸 Reading image: {image_path}")
    with open(image_file, "rb") as f:
        image_bytes = f.read()
        image_base64 = base64.b64encode(image_bytes).decode("utf-8")

    print(f"📦 Image size: {len(image_bytes) / 1024:.2f} KB")
    print(f"🚀 Sending request to {api_url}/api/v1/analysis/observation")

    response = requests.post(
        f"{api_url}/api/v1/analysis/observation",
        json={"image": image_base64},
        timeout=30
    )

    if response.status_code != 200:
        print(f"❌ Error: {response.status_code}")
        print(response.json())
        return None

    result = response.json()

    if not result["success"]:
        print(f"\n⚠️  Analysis failed ({result.get('error_kind')}): {result.get('error')}")
        return result

    print(f"\n✅ Success!")
    print(f"⏱️  Processing time: {result['processing_time_ms']}ms")
    print(f"📊 Confidence: {result['confidence']:.2%}")
    print(f"📏 Distance: {result['distance'] if result['distance'] is not None else '-'} m")
    print(f"🏷️  Observation code: {result['observation_code'] or '-'}")

    predictions = result.get("predictions") or {}

    print("\n🔎 Objects:")
    objects = predictions.get("objects", [])
    if objects:
        for obj in objects:
            print(f"   - {obj['class']}: {obj['confidence']:.2f}")
    else:
        print("   No objects detected")

    print("\n📐 Distance candidates:")
    distances = predictions.get("distances", [])
    if distances:
        for candidate in distances:
            print(f"   - {candidate['value']} m from '{candidate['original_text']}' ({candidate['confidence']:.3f})")
    else:
        print("   No distances found")

    autofill = result.get("autofill", {})
    print(f"\n📝 Autofill: distance={autofill.get('distance')}, code={autofill.get('observation_code')}")

    return result


def main():
    """Entry point"""
    if len(sys.argv) < 2:
        print("Usage: python example.py <path_to_frame> [api_url]")
        print("Example: python example.py frame.jpg")
        sys.exit(1)

    image_path = sys.argv[1]
    api_url = sys.argv[2] if len(sys.argv) > 2 else "http://localhost:8000"

    try:
        result = analyze_frame(image_path, api_url)

        if result:
            output_file = Path(image_path).stem + "_analysis.json"
            with open(output_file, "w", encoding="utf-8") as f:
                json.dump(result, f, indent=2, ensure_ascii=False)
            print(f"\n💾 Full result saved to: {output_file}")

    except FileNotFoundError as e:
        print(f"❌ Error: {e}")
        sys.exit(1)

    except requests.exceptions.ConnectionError:
        print(f"❌ Error: Cannot connect to the service at {api_url}")
        print("Make sure the service is running: python run.py")
        sys.exit(1)


if __name__ == "__main__":
    main()
