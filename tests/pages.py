"""HTML snippets shaped like hotwheels.fandom pages."""

PHOTO_URL = "https://static.wikia.nocookie.net/hotwheels/images/1/1a/Mazda_MX-5.jpg/revision/latest?cb=2025"
NO_PHOTO_URL = "https://static.wikia.nocookie.net/hotwheels/images/0/0b/Image_Not_Available.jpg"


def index_row(toy, col, model_cell, series_cell, position, photo_url=PHOTO_URL):
    photo = f'<a href="{photo_url}" class="image"><img src="{photo_url}"></a>' if photo_url else ""
    return (
        f"<tr><td>{toy}</td><td>{col}</td><td>{model_cell}</td>"
        f"<td>{series_cell}</td><td>{position}</td><td>{photo}</td></tr>"
    )


def index_page(*rows):
    header = "<tr><th>Toy #</th><th>Col #</th><th>Model</th><th>Series</th><th>Series #</th><th>Photo</th></tr>"
    return (
        "<!DOCTYPE html><html><body><div class=\"mw-parser-output\">"
        "<p>List of cars</p>"
        "<table class=\"wikitable sortable\"><tbody>"
        + header + "".join(rows)
        + "</tbody></table></div></body></html>"
    )


MAZDA_ROW = index_row(
    "HYW18", "5",
    "<a href='/wiki/Mazda_MX-5_Miata_(2025)'>Mazda MX-5 Miata</a>",
    "<a href='/wiki/HW_Wagons_(2025)'>HW Wagons</a>",
    "5/10",
)

DETAIL_PAGE = """
<html><body><div class="mw-parser-output">
<aside role="region" class="portable-infobox pi-background">
  <h2 class="pi-item pi-title" data-source="name">Mazda MX-5 Miata</h2>
  <div class="pi-item pi-data" data-source="designer">
    <h3 class="pi-data-label">Designer</h3>
    <div class="pi-data-value"><a href="/wiki/Ryu_Asada">Ryu Asada</a></div>
  </div>
  <div class="pi-item pi-data" data-source="series">
    <h3 class="pi-data-label">Series</h3>
    <div class="pi-data-value"><a href="/wiki/HW_Roadsters_(2016)">HW Roadsters</a></div>
  </div>
  <div class="pi-item pi-data" data-source="years">
    <h3 class="pi-data-label">Produced</h3>
    <div class="pi-data-value">2016 - Present</div>
  </div>
  <div class="pi-item pi-data" data-source="number">
    <h3 class="pi-data-label">Number</h3>
    <div class="pi-data-value">DHX91</div>
  </div>
</aside>
<p>Intro before the first heading.</p>
<h2><span class="mw-headline" id="Description">Description</span></h2>
<p>The Mazda MX-5 Miata is a roadster casting.</p>
<p>It debuted in 2016.</p>
<h2><span class="mw-headline" id="Versions">Versions</span></h2>
<table class="wikitable"><tbody>
<tr><th>Col #</th><th>Year</th><th>Series</th><th>Color</th><th>Tampo</th><th>Base Color / Type</th>
<th>Window Color</th><th>Interior Color</th><th>Wheel Type</th><th>Toy #</th><th>Country</th><th>Notes</th><th>Photo</th></tr>
<tr><td>65</td><td>2016</td><td><a href="/wiki/HW_Roadsters_(2016)">HW Roadsters</a></td><td>Red</td>
<td>White stripes</td><td>Black / Plastic</td><td>Clear</td><td>Black</td><td>MC5</td><td>DHX91</td>
<td>Malaysia</td><td>Base code(s): F12, G07</td>
<td><a href="https://static.wikia.nocookie.net/hotwheels/images/a/aa/Mazda_red.png/revision/latest" class="image">img</a></td></tr>
<tr><td>120</td><td>2017</td><td><a href="/wiki/HW_Roadsters_(2017)">HW Roadsters</a>
<a href="/wiki/2017_Treasure_Hunts_Series#Super_Treasure_Hunts">Super Treasure Hunt</a></td><td>Spectraflame Blue</td>
<td>Logos</td><td>Chrome / Metal</td><td>Clear</td><td>Tan</td><td>Real Riders</td><td>DTX40</td>
<td>Thailand</td><td></td>
<td><a href="https://static.wikia.nocookie.net/hotwheels/images/b/bb/Image_Not_Available.jpg" class="image">img</a></td></tr>
<tr><td colspan="13">Multipack releases</td></tr>
</tbody></table>
</div></body></html>
"""
